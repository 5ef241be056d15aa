"""
Report Workflow - status rules for the report lifecycle.

    awaiting-approval → pending → in-progress → resolved (archived)
    awaiting-approval → rejected (deleted, no tombstone)

DESIGN PRINCIPLES:
- Only awaiting-approval reports can be approved or rejected
- Administrators move live reports between pending and in-progress freely
- Resolution is a move into the archive, never a stored status
"""

from typing import Any, Iterable
import logging

from fixit.core.exceptions import InvalidTransitionError, ValidationError
from fixit.models.report import ReportStatus

logger = logging.getLogger(__name__)


class ReportWorkflow:
    """Stateless transition checks for live reports."""

    LIVE_STATUSES = (
        ReportStatus.AWAITING_APPROVAL,
        ReportStatus.PENDING,
        ReportStatus.IN_PROGRESS,
    )

    # Statuses an administrator may set through a plain status update
    SETTABLE_STATUSES = (ReportStatus.PENDING, ReportStatus.IN_PROGRESS)

    @staticmethod
    def initial_status(is_urgent: bool) -> ReportStatus:
        """Urgent reports skip the approval queue."""
        return ReportStatus.PENDING if is_urgent else ReportStatus.AWAITING_APPROVAL

    @staticmethod
    def parse_status(value: Any) -> ReportStatus:
        """
        Parse a status value.

        Raises:
            ValidationError: If the value is not a known status
        """
        raw = value.value if isinstance(value, ReportStatus) else value
        try:
            return ReportStatus(raw)
        except ValueError:
            raise ValidationError(
                f"Invalid status value: {raw!r}",
                field="status",
                allowed=[s.value for s in ReportStatus],
            )

    @classmethod
    def current_status(cls, report: dict) -> ReportStatus:
        stored = report.get("status") or ReportStatus.AWAITING_APPROVAL.value
        try:
            status = ReportStatus(stored)
        except ValueError:
            logger.warning(f"Report {report.get('id')} has unknown stored status {stored!r}")
            return ReportStatus.AWAITING_APPROVAL
        if status == ReportStatus.RESOLVED:
            # Live document left with a stored "resolved" status; it was reviewed but never archived
            logger.warning(f"Live report {report.get('id')} stored as resolved; treating as in-progress")
            return ReportStatus.IN_PROGRESS
        return status

    @classmethod
    def require_status(cls, report: dict, allowed: Iterable[ReportStatus], action: str) -> ReportStatus:
        """
        Ensure the report's current status is one of allowed.

        Raises:
            InvalidTransitionError: Otherwise
        """
        current = cls.current_status(report)
        if current not in tuple(allowed):
            raise InvalidTransitionError(current.value, action)
        return current

    @classmethod
    def require_reviewed(cls, report: dict, action: str) -> ReportStatus:
        """The report must have left the approval queue."""
        current = cls.current_status(report)
        if current == ReportStatus.AWAITING_APPROVAL:
            raise InvalidTransitionError(
                current.value,
                action,
                message=f"Report must be approved before it can be {action}d",
            )
        return current

    @classmethod
    def validate_status_update(cls, report: dict, new_status: Any) -> ReportStatus:
        """
        Validate an administrator status update.

        Backward moves (in-progress → pending) are allowed.

        Raises:
            ValidationError: Unknown status, or a status not settable here
            InvalidTransitionError: Report still awaiting approval
        """
        target = cls.parse_status(new_status)
        if target not in cls.SETTABLE_STATUSES:
            hint = " Use the resolve operation with proof media." if target == ReportStatus.RESOLVED else ""
            raise ValidationError(
                f"Status '{target.value}' cannot be set directly.{hint}",
                field="status",
                allowed=[s.value for s in cls.SETTABLE_STATUSES],
            )
        cls.require_reviewed(report, "update")
        return target
