"""
Report Lifecycle Manager - creation, review and resolution of civic reports.

Flow:
    create → awaiting-approval (or pending when urgent)
    approve → pending → in-progress → resolve (moved to resolved_reports)
    reject → deleted permanently, no archive entry

DESIGN PRINCIPLES:
- The primary mutation is durable before any side effect runs
- Notifications and reputation awards are best-effort and never change
  the outcome of an operation
- Resolution is a two-step move: create the resolved record, then delete
  the live report. A retry after a failure between the two steps finds the
  existing record and finishes the move instead of archiving twice.
"""

from typing import Any, Dict, List, Optional, Union
import logging

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.auth import Principal, Role, require_role
from fixit.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from fixit.core.settings import settings
from fixit.models.report import ReportCreate, ReportStatus, ReportUpdate
from fixit.services.notifications import NotificationService, get_notification_service, templates
from fixit.services.report_documents import (
    REPORT_CONTENT_FIELDS,
    normalize_comment,
    normalize_flag,
    parse_coordinates,
)
from fixit.services.report_workflow import ReportWorkflow
from fixit.services.reputation_service import ReputationService, get_reputation_service
from fixit.services.user_service import UserService, display_name, get_user_service
from fixit.utils.firestore_helpers import (
    doc_to_dict,
    first_match,
    sort_newest_first,
    stream_to_dicts,
    utcnow,
)
from fixit.utils.identity import normalize_id, same_identity

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "category", "location")
EDITABLE_FIELDS = ("title", "description", "category", "location", "is_urgent", "images")


class ReportLifecycleManager:
    """
    Owns every state change of a report.

    Collaborators are injected by reference; the defaults are the
    process-wide singletons.
    """

    def __init__(
        self,
        db=None,
        notifier: Optional[NotificationService] = None,
        reputation: Optional[ReputationService] = None,
        user_service: Optional[UserService] = None,
    ):
        self.db = db if db is not None else get_db()
        self.notifier = notifier or get_notification_service()
        self.reputation = reputation or get_reputation_service()
        self.users = user_service or UserService(self.db)

    @property
    def reports(self):
        return self.db.collection(collections.REPORTS)

    @property
    def resolved_reports(self):
        return self.db.collection(collections.RESOLVED_REPORTS)

    # ------------------------------------------------------------------
    # Creation and owner edits
    # ------------------------------------------------------------------
    def create(self, payload: Union[ReportCreate, Dict], author_id) -> Dict:
        """
        Store a new report.

        Args:
            payload: Report fields (media already uploaded, as URLs)
            author_id: Owner of the report

        Returns:
            Serialised report

        Raises:
            ValidationError: Missing required field, unresolvable author,
                too many images
        """
        data = payload.model_dump() if isinstance(payload, ReportCreate) else dict(payload)

        owner_id = normalize_id(author_id)
        if not owner_id:
            raise ValidationError("Author is required", field="user_id")

        for field in REQUIRED_FIELDS:
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{field} is required", field=field)

        images = [url for url in (data.get("images") or []) if url]
        self._check_image_count(images)

        latitude, longitude, geo_tagged = parse_coordinates(data.get("latitude"), data.get("longitude"))
        is_urgent = bool(data.get("is_urgent"))
        status = ReportWorkflow.initial_status(is_urgent)
        now = utcnow()

        report_data = {
            "user_id": owner_id,
            "title": data["title"].strip(),
            "description": data["description"].strip(),
            "category": data["category"].strip(),
            "location": data["location"].strip(),
            "latitude": latitude,
            "longitude": longitude,
            "geo_tagged": geo_tagged,
            "geo_tagged_at": now if geo_tagged else None,
            "is_urgent": is_urgent,
            "images": images,
            "videos": [url for url in (data.get("videos") or []) if url],
            "comments": [],
            "flags": [],
            "status": status.value,
            "is_verified": False,
            "verified_by": None,
            "verified_at": None,
            "created_at": now,
            "updated_at": now,
        }

        doc_ref = self.reports.document()
        doc_ref.set(report_data)

        logger.info(
            f"✅ Report created: {doc_ref.id} by {owner_id} "
            f"(status={status.value}, geo_tagged={geo_tagged})"
        )
        return self.serialize_report({**report_data, "id": doc_ref.id})

    def update_content(self, report_id, caller_id, changes: Union[ReportUpdate, Dict]) -> Dict:
        """
        Owner edit of report content.

        Raises:
            NotFoundError: Report absent
            ForbiddenError: Caller is not the owner
            ValidationError: A required field was blanked
        """
        report = self._get_live(report_id)
        self._require_owner(report, caller_id, "edit")

        data = changes.model_dump(exclude_none=True) if isinstance(changes, ReportUpdate) else {
            k: v for k, v in dict(changes).items() if v is not None
        }

        updates: Dict[str, Any] = {}
        for field in EDITABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in REQUIRED_FIELDS:
                if not isinstance(value, str) or not value.strip():
                    raise ValidationError(f"{field} cannot be empty", field=field)
                value = value.strip()
            elif field == "images":
                value = [url for url in value if url]
                self._check_image_count(value)
            elif field == "is_urgent":
                value = bool(value)
            updates[field] = value

        if "latitude" in data or "longitude" in data:
            latitude, longitude, geo_tagged = parse_coordinates(
                data.get("latitude", report.get("latitude")),
                data.get("longitude", report.get("longitude")),
            )
            updates.update({"latitude": latitude, "longitude": longitude, "geo_tagged": geo_tagged})
            if geo_tagged and not report.get("geo_tagged"):
                updates["geo_tagged_at"] = utcnow()

        if not updates:
            return self.serialize_report(report)

        updates["updated_at"] = utcnow()
        self.reports.document(report["id"]).update(updates)
        logger.info(f"Report {report['id']} edited by owner ({', '.join(sorted(updates))})")
        return self.serialize_report({**report, **updates})

    def delete(self, report_id, caller_id) -> Dict:
        """
        Owner retraction. Nothing is archived.

        Raises:
            NotFoundError: Report absent
            ForbiddenError: Caller is not the owner
        """
        report = self._get_live(report_id)
        self._require_owner(report, caller_id, "delete")
        self.reports.document(report["id"]).delete()
        logger.info(f"Report {report['id']} deleted by owner")
        return self.serialize_report(report)

    # ------------------------------------------------------------------
    # Administrator transitions
    # ------------------------------------------------------------------
    def approve(self, principal: Principal, report_id) -> Dict:
        """
        awaiting-approval → pending, then notify the owner.

        Raises:
            ForbiddenError, NotFoundError, InvalidTransitionError
        """
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_live(report_id)
        ReportWorkflow.require_status(report, (ReportStatus.AWAITING_APPROVAL,), "approve")

        updates = {"status": ReportStatus.PENDING.value, "updated_at": utcnow()}
        self.reports.document(report["id"]).update(updates)
        logger.info(f"✅ Report {report['id']} approved by {principal.user_id}")

        approved = {**report, **updates}
        self._notify_owner(
            approved,
            lambda name: templates.report_approved(name, approved["title"], approved["id"]),
        )
        return self.serialize_report(approved)

    def reject(self, principal: Principal, report_id, reasons: Optional[List[str]] = None) -> Dict:
        """
        Delete an awaiting-approval report and tell the owner why.

        Rejected reports leave no trace in either collection.
        """
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_live(report_id)
        ReportWorkflow.require_status(report, (ReportStatus.AWAITING_APPROVAL,), "reject")

        self.reports.document(report["id"]).delete()
        logger.info(f"Report {report['id']} rejected by {principal.user_id}")

        reasons = [r.strip() for r in (reasons or []) if r and r.strip()]
        self._notify_owner(
            report,
            lambda name: templates.report_rejected(name, report.get("title", ""), report["id"], reasons),
        )
        return self.serialize_report(report)

    def update_status(self, principal: Principal, report_id, new_status) -> Dict:
        """
        Move a reviewed report between pending and in-progress.

        Raises:
            ValidationError: Unknown status, or resolved (use resolve())
            InvalidTransitionError: Report still awaiting approval
        """
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_live(report_id)
        target = ReportWorkflow.validate_status_update(report, new_status)

        updates = {"status": target.value, "updated_at": utcnow()}
        self.reports.document(report["id"]).update(updates)
        logger.info(
            f"Report {report['id']} status {report.get('status')} → {target.value} "
            f"by {principal.user_id}"
        )
        return self.serialize_report({**report, **updates})

    def verify(self, principal: Principal, report_id) -> Dict:
        """Mark a reviewed report verified and award the owner once."""
        require_role(principal, Role.ADMINISTRATOR)
        report = self._get_live(report_id)
        ReportWorkflow.require_reviewed(report, "verify")

        if report.get("is_verified"):
            return self.serialize_report(report)

        updates = {
            "is_verified": True,
            "verified_by": principal.user_id,
            "verified_at": utcnow(),
            "updated_at": utcnow(),
        }
        self.reports.document(report["id"]).update(updates)
        logger.info(f"✅ Report {report['id']} verified by {principal.user_id}")

        self._award(self.reputation.award_verified_report, report.get("user_id"))
        return self.serialize_report({**report, **updates})

    def resolve(
        self,
        principal: Principal,
        report_id,
        resolution_description: Optional[str],
        proof_media_refs: Optional[List[str]],
    ) -> Dict:
        """
        Archive a report with proof of resolution.

        Steps:
        1. Create the resolved record (or reuse one left by an earlier attempt)
        2. Delete the live report
        3. Award the owner (best-effort)

        Returns:
            Serialised resolved record

        Raises:
            ValidationError: No proof media
            NotFoundError: Neither a live report nor a resolved record exists
            InvalidTransitionError: Report still awaiting approval
        """
        require_role(principal, Role.ADMINISTRATOR)

        proofs = [ref.strip() for ref in (proof_media_refs or []) if isinstance(ref, str) and ref.strip()]
        if not proofs:
            raise ValidationError("At least one proof image is required to resolve a report", field="proof_images")

        rid = normalize_id(report_id)
        report = doc_to_dict(self.reports.document(rid).get()) if rid else None
        existing = self.find_resolved(rid) if rid else None

        if report is None:
            if existing:
                logger.info(f"Report {rid} already resolved as {existing['id']}")
                return self.serialize_resolved(existing)
            raise NotFoundError("Report not found", report_id=rid)

        ReportWorkflow.require_reviewed(report, "resolve")

        if existing:
            logger.warning(f"⚠️ Resolved record {existing['id']} exists for live report {rid}; finishing move")
            record = existing
        else:
            record = self._build_resolved_record(report, principal, resolution_description, proofs)
            record_ref = self.resolved_reports.document()
            record_ref.set(record)
            record = {**record, "id": record_ref.id}
            logger.info(f"✅ Report {rid} archived as resolved record {record_ref.id}")

        self.reports.document(rid).delete()
        logger.info(f"✅ Live report {rid} removed after resolution")

        self._award(self.reputation.award_resolved_report, report.get("user_id"))
        return self.serialize_resolved(record)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, report_id) -> Dict:
        return self.serialize_report(self._get_live(report_id))

    def list_by_status(self, status=None) -> List[Dict]:
        """
        Live reports, newest first. status="resolved" lists the archive.
        """
        if status in (None, ""):
            docs = self.reports.stream()
        else:
            parsed = ReportWorkflow.parse_status(status)
            if parsed == ReportStatus.RESOLVED:
                return self.list_resolved()
            docs = self.reports.where("status", "==", parsed.value).stream()

        owners: Dict[str, Optional[Dict]] = {}
        return [
            self.serialize_report(r, owners)
            for r in sort_newest_first(stream_to_dicts(docs), "created_at")
        ]

    def list_for_owner(self, user_id) -> List[Dict]:
        uid = normalize_id(user_id)
        if not uid:
            return []
        docs = self.reports.where("user_id", "==", uid).stream()
        owners: Dict[str, Optional[Dict]] = {}
        return [
            self.serialize_report(r, owners)
            for r in sort_newest_first(stream_to_dicts(docs), "created_at")
        ]

    def list_resolved(self) -> List[Dict]:
        owners: Dict[str, Optional[Dict]] = {}
        records = stream_to_dicts(self.resolved_reports.stream())
        return [self.serialize_resolved(r, owners) for r in sort_newest_first(records, "resolved_at")]

    def count_resolved(self) -> int:
        return sum(1 for _ in self.resolved_reports.stream())

    def find_resolved(self, original_report_id) -> Optional[Dict]:
        rid = normalize_id(original_report_id)
        if not rid:
            return None
        return first_match(self.resolved_reports, "original_report_id", rid)

    def summary(self) -> Dict:
        counts = {status: 0 for status in ReportWorkflow.LIVE_STATUSES}
        total = 0
        for report in stream_to_dicts(self.reports.stream()):
            counts[ReportWorkflow.current_status(report)] += 1
            total += 1
        resolved = self.count_resolved()
        return {
            "total": total + resolved,
            "awaiting_approval": counts[ReportStatus.AWAITING_APPROVAL],
            "pending": counts[ReportStatus.PENDING],
            "in_progress": counts[ReportStatus.IN_PROGRESS],
            "resolved": resolved,
        }

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def serialize_report(self, report: Dict, owners: Optional[Dict] = None) -> Dict:
        data = dict(report)
        data["user_id"] = normalize_id(report.get("user_id"))
        data["owner"] = self._owner_summary(data["user_id"], owners)
        data["comments"] = [normalize_comment(c) for c in report.get("comments") or []]
        data["flags"] = [normalize_flag(f) for f in report.get("flags") or []]
        data["flag_count"] = len(data["flags"])
        data["status"] = ReportWorkflow.current_status(report).value
        data["images"] = list(report.get("images") or [])
        data["videos"] = list(report.get("videos") or [])
        return data

    def serialize_resolved(self, record: Dict, owners: Optional[Dict] = None) -> Dict:
        data = dict(record)
        data["user_id"] = normalize_id(record.get("user_id"))
        data["original_report_id"] = normalize_id(record.get("original_report_id")) or ""
        data["owner"] = self._owner_summary(data["user_id"], owners)
        data["comments"] = [normalize_comment(c) for c in record.get("comments") or []]
        data["resolution_description"] = record.get("resolution_description") or ""
        data["proof_images"] = list(record.get("proof_images") or [])
        data["status"] = ReportStatus.RESOLVED.value
        return data

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _get_live(self, report_id) -> Dict:
        rid = normalize_id(report_id)
        report = doc_to_dict(self.reports.document(rid).get()) if rid else None
        if report is None:
            raise NotFoundError("Report not found", report_id=rid)
        return report

    def _require_owner(self, report: Dict, caller_id, action: str) -> None:
        if not same_identity(report.get("user_id"), caller_id):
            raise ForbiddenError(
                f"Only the report owner can {action} this report",
                report_id=report["id"],
            )

    def _check_image_count(self, images: List[str]) -> None:
        if len(images) > settings.MAX_REPORT_IMAGES:
            raise ValidationError(
                f"A report can have at most {settings.MAX_REPORT_IMAGES} images",
                field="images",
                count=len(images),
            )

    def _build_resolved_record(
        self,
        report: Dict,
        principal: Principal,
        resolution_description: Optional[str],
        proofs: List[str],
    ) -> Dict:
        record = {field: report.get(field) for field in REPORT_CONTENT_FIELDS}
        record.update({
            "original_report_id": report["id"],
            "user_id": normalize_id(report.get("user_id")),
            "is_urgent": bool(report.get("is_urgent")),
            "images": list(report.get("images") or []),
            "original_images": list(report.get("images") or []),
            "videos": list(report.get("videos") or []),
            "comments": [normalize_comment(c) for c in report.get("comments") or []],
            "resolution_description": (resolution_description or "").strip(),
            "proof_images": proofs,
            "resolved_by": principal.user_id,
            "resolved_at": utcnow(),
        })
        return record

    def _owner_summary(self, user_id: Optional[str], owners: Optional[Dict]) -> Optional[Dict]:
        if not user_id:
            return None
        if owners is not None and user_id in owners:
            return owners[user_id]
        summary = self.users.owner_summary(user_id)
        if owners is not None:
            owners[user_id] = summary
        return summary

    def _notify_owner(self, report: Dict, render) -> bool:
        """Best-effort email to the report owner."""
        try:
            owner = self.users.resolve_user(report.get("user_id"))
            if not owner:
                logger.warning(f"⚠️ Owner of report {report.get('id')} not found; skipping notification")
                return False
            return self.notifier.send_template(owner.get("email"), render(display_name(owner) or "there"))
        except Exception as e:
            logger.warning(f"⚠️ Owner notification failed for report {report.get('id')}: {e}", exc_info=True)
            return False

    def _award(self, award, user_id) -> None:
        try:
            award(user_id)
        except Exception as e:
            logger.warning(f"⚠️ Reputation award skipped for {user_id}: {e}")


# Global manager instance (singleton pattern)
_report_lifecycle_manager: Optional[ReportLifecycleManager] = None


def get_report_lifecycle_manager() -> ReportLifecycleManager:
    """
    Get or create ReportLifecycleManager singleton instance.

    Returns:
        ReportLifecycleManager: The global lifecycle manager
    """
    global _report_lifecycle_manager
    if _report_lifecycle_manager is None:
        _report_lifecycle_manager = ReportLifecycleManager(user_service=get_user_service())
    return _report_lifecycle_manager
