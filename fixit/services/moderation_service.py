"""
Moderation Service - community flags and moderator removal.

Flags are embedded in the report document, one per author. Flags never
change a report's status on their own; only an administrator acts on them.

Moderator removal snapshots everyone who needs a notification BEFORE the
report is deleted, then notifies each recipient independently so one failed
email never blocks the rest.
"""

from datetime import timezone
from typing import Dict, List, Optional
import logging

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.auth import Principal, Role, require_role
from fixit.core.exceptions import ConflictError, NotFoundError, ValidationError
from fixit.core.settings import settings
from fixit.services.notifications import NotificationService, get_notification_service, templates
from fixit.services.report_documents import normalize_flag
from fixit.services.report_lifecycle import ReportLifecycleManager, get_report_lifecycle_manager
from fixit.services.user_service import UserService, display_name, get_user_service
from fixit.utils.firestore_helpers import doc_to_dict, sort_newest_first, stream_to_dicts, utcnow
from fixit.utils.identity import normalize_id, same_identity

logger = logging.getLogger(__name__)


class ModerationService:
    """Flagging, flag dismissal and moderator removal."""

    def __init__(
        self,
        db=None,
        notifier: Optional[NotificationService] = None,
        user_service: Optional[UserService] = None,
        lifecycle: Optional[ReportLifecycleManager] = None,
    ):
        self.db = db if db is not None else get_db()
        self.notifier = notifier or get_notification_service()
        self.users = user_service or UserService(self.db)
        self.lifecycle = lifecycle or ReportLifecycleManager(
            db=self.db, notifier=self.notifier, user_service=self.users
        )

    @property
    def reports(self):
        return self.db.collection(collections.REPORTS)

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------
    def flag(self, report_id, author_id, reason: str, description: Optional[str] = None) -> Dict:
        """
        Flag a report for moderator attention.

        Raises:
            ValidationError: Missing reason or unresolvable author
            NotFoundError: Report absent
            ConflictError: Author already flagged this report
        """
        if not reason or not reason.strip():
            raise ValidationError("Flag reason is required", field="reason")
        author = normalize_id(author_id)
        if not author:
            raise ValidationError("Flag author is required", field="user_id")

        report = self._get_report(report_id)
        flags = list(report.get("flags") or [])
        if any(same_identity(normalize_flag(f)["user_id"], author) for f in flags):
            raise ConflictError("You have already flagged this report", report_id=report["id"], user_id=author)

        flags.append({
            "user_id": author,
            "reason": reason.strip(),
            "description": (description or "").strip(),
            "created_at": utcnow(),
        })
        self.reports.document(report["id"]).update({"flags": flags})

        logger.info(f"🚩 Report {report['id']} flagged by {author} ({len(flags)} flags)")
        return self.lifecycle.serialize_report({**report, "flags": flags})

    def dismiss_flag(self, principal: Principal, report_id, author_id) -> Dict:
        """Remove exactly the flag written by author_id. Absent flag is a no-op."""
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_report(report_id)

        flags = list(report.get("flags") or [])
        remaining = [f for f in flags if not same_identity(normalize_flag(f)["user_id"], author_id)]
        if len(remaining) != len(flags):
            self.reports.document(report["id"]).update({"flags": remaining})
            logger.info(f"Flag by {normalize_id(author_id)} dismissed on report {report['id']}")
        return self.lifecycle.serialize_report({**report, "flags": remaining})

    def dismiss_all_flags(self, principal: Principal, report_id) -> Dict:
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_report(report_id)
        self.reports.document(report["id"]).update({"flags": []})
        logger.info(f"All flags dismissed on report {report['id']}")
        return self.lifecycle.serialize_report({**report, "flags": []})

    def list_flagged(self) -> List[Dict]:
        """Live reports with at least one flag, most recently flagged first."""
        flagged = [r for r in stream_to_dicts(self.reports.stream()) if r.get("flags")]
        for report in flagged:
            stamps = [_aware(normalize_flag(f)["created_at"]) for f in report["flags"]]
            report["_last_flagged_at"] = max((s for s in stamps if s), default=None)

        owners: Dict[str, Optional[Dict]] = {}
        result = []
        for report in sort_newest_first(flagged, "_last_flagged_at"):
            report.pop("_last_flagged_at", None)
            result.append(self.lifecycle.serialize_report(report, owners))
        return result

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------
    def moderator_remove(
        self,
        principal: Principal,
        report_id,
        reason: Optional[str] = None,
        warning_message: Optional[str] = None,
    ) -> Dict:
        """
        Delete a report and notify its owner and every distinct flagger.

        A warning_message is added to the owner's removal email.

        Returns:
            {"deleted_report", "owner_notified", "flaggers_notified",
             "flaggers_total", "warning"}
        """
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_report(report_id)

        # Snapshot recipients before the delete
        owner = self._lookup_user(report.get("user_id"))
        flagger_ids: List[str] = []
        for flag in report.get("flags") or []:
            flagger = normalize_flag(flag)["user_id"]
            if flagger and flagger not in flagger_ids:
                flagger_ids.append(flagger)
        flaggers = [self._lookup_user(uid) for uid in flagger_ids]
        deleted = self.lifecycle.serialize_report(report)

        self.reports.document(report["id"]).delete()
        logger.info(f"🗑️ Report {report['id']} removed by moderator {principal.user_id}")

        title = report.get("title") or "Untitled report"
        removal_reason = (reason or "").strip() or settings.DEFAULT_REMOVAL_REASON
        warning = (warning_message or "").strip() or None
        if warning:
            logger.info(f"⚠️ Owner {deleted.get('user_id')} warned on removal of {report['id']}")

        owner_notified = False
        if owner:
            owner_notified = self._notify(
                owner,
                templates.report_removed(display_name(owner) or "there", title, removal_reason, warning),
            )

        flaggers_notified = 0
        for flagger in flaggers:
            if flagger and self._notify(
                flagger, templates.thank_flagger(display_name(flagger) or "there", title)
            ):
                flaggers_notified += 1

        logger.info(
            f"Removal notifications for {report['id']}: owner={owner_notified}, "
            f"flaggers={flaggers_notified}/{len(flagger_ids)}"
        )
        return {
            "deleted_report": {
                "id": deleted["id"],
                "title": deleted.get("title"),
                "user_id": deleted.get("user_id"),
                "flag_count": deleted["flag_count"],
            },
            "owner_notified": owner_notified,
            "flaggers_notified": flaggers_notified,
            "flaggers_total": len(flagger_ids),
            "warning": warning,
        }

    def batch_remove(self, principal: Principal, report_ids: List) -> Dict:
        """
        Delete many reports without notifications.

        Each id is handled on its own; a failure is recorded and the batch
        continues.
        """
        require_role(principal, Role.ADMINISTRATOR)
        if not report_ids:
            raise ValidationError("Report ids must be a non-empty list", field="report_ids")

        deleted_count = 0
        missing: List[str] = []
        failed: List[str] = []
        for raw_id in report_ids:
            rid = normalize_id(raw_id)
            if not rid:
                failed.append(str(raw_id))
                continue
            try:
                doc_ref = self.reports.document(rid)
                if not doc_ref.get().exists:
                    missing.append(rid)
                    continue
                doc_ref.delete()
                deleted_count += 1
            except Exception as e:
                logger.error(f"Batch delete failed for report {rid}: {e}", exc_info=True)
                failed.append(rid)

        logger.info(
            f"🗑️ Batch removal by {principal.user_id}: {deleted_count} deleted, "
            f"{len(missing)} missing, {len(failed)} failed"
        )
        return {"deleted_count": deleted_count, "missing": missing, "failed": failed}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _get_report(self, report_id) -> Dict:
        rid = normalize_id(report_id)
        report = doc_to_dict(self.reports.document(rid).get()) if rid else None
        if report is None:
            raise NotFoundError("Report not found", report_id=rid)
        return report

    def _lookup_user(self, user_id) -> Optional[Dict]:
        try:
            return self.users.resolve_user(user_id)
        except Exception as e:
            logger.warning(f"⚠️ Could not look up user {user_id} for notification: {e}")
            return None

    def _notify(self, user: Dict, template) -> bool:
        try:
            return self.notifier.send_template(user.get("email"), template)
        except Exception as e:
            logger.warning(f"⚠️ Notification to {user.get('id')} failed: {e}", exc_info=True)
            return False


def _aware(value):
    if value is not None and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


# Global service instance (singleton pattern)
_moderation_service: Optional[ModerationService] = None


def get_moderation_service() -> ModerationService:
    global _moderation_service
    if _moderation_service is None:
        _moderation_service = ModerationService(
            user_service=get_user_service(),
            lifecycle=get_report_lifecycle_manager(),
        )
    return _moderation_service
