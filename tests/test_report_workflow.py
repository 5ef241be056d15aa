"""
Tests for report status rules.
"""

import pytest

from fixit.core.exceptions import InvalidTransitionError, ValidationError
from fixit.models.report import ReportStatus
from fixit.services.report_workflow import ReportWorkflow


def test_initial_status_depends_on_urgency():
    assert ReportWorkflow.initial_status(True) == ReportStatus.PENDING
    assert ReportWorkflow.initial_status(False) == ReportStatus.AWAITING_APPROVAL


def test_parse_status_rejects_unknown_value():
    with pytest.raises(ValidationError) as exc:
        ReportWorkflow.parse_status("closed")
    assert exc.value.context["field"] == "status"


@pytest.mark.parametrize("current, target", [
    ("pending", "in-progress"),
    ("in-progress", "pending"),
    ("pending", "pending"),
])
def test_status_update_allows_moves_between_reviewed_states(current, target):
    report = {"id": "r1", "status": current}
    assert ReportWorkflow.validate_status_update(report, target).value == target


def test_stored_resolved_status_reads_as_in_progress():
    report = {"id": "r1", "status": "resolved"}
    assert ReportWorkflow.current_status(report) == ReportStatus.IN_PROGRESS
    assert ReportWorkflow.require_reviewed(report, "resolve") == ReportStatus.IN_PROGRESS


def test_status_update_refuses_resolved():
    with pytest.raises(ValidationError) as exc:
        ReportWorkflow.validate_status_update({"id": "r1", "status": "pending"}, "resolved")
    assert "resolve" in exc.value.message


def test_status_update_refuses_awaiting_approval_as_target():
    with pytest.raises(ValidationError):
        ReportWorkflow.validate_status_update({"id": "r1", "status": "pending"}, "awaiting-approval")


def test_status_update_requires_review_first():
    with pytest.raises(InvalidTransitionError) as exc:
        ReportWorkflow.validate_status_update({"id": "r1", "status": "awaiting-approval"}, "pending")
    assert exc.value.context["current_status"] == "awaiting-approval"


def test_invalid_transition_is_a_conflict():
    with pytest.raises(InvalidTransitionError) as exc:
        ReportWorkflow.require_status({"id": "r1", "status": "pending"}, (ReportStatus.AWAITING_APPROVAL,), "approve")
    assert exc.value.status_code == 409
    assert exc.value.to_dict()["error"] == "invalid_transition"
