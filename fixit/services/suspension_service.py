"""
User Suspension Manager - moves accounts between the active and suspended stores.

Both directions are two-step moves with create-before-delete, so a crash
between the steps leaves the user in BOTH stores rather than in neither.
unsuspend() reconciles that state: if the active user already exists, the
leftover suspended record is simply deleted.
"""

from typing import Dict, Optional
import logging

from google.api_core.exceptions import AlreadyExists

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.auth import Principal, Role, require_role
from fixit.core.exceptions import ConflictError, NotFoundError, ValidationError
from fixit.services.notifications import NotificationService, get_notification_service, templates
from fixit.services.user_service import UserService, display_name, get_user_service
from fixit.utils.firestore_helpers import first_match, utcnow
from fixit.utils.identity import normalize_id

logger = logging.getLogger(__name__)

# Fields that exist only on the suspended record
SUSPENSION_FIELDS = (
    "id",
    "original_user_id",
    "suspended",
    "suspended_at",
    "suspension_reason",
    "suspended_by",
)


class UserSuspensionManager:
    """Suspend and reinstate resident accounts."""

    def __init__(
        self,
        db=None,
        notifier: Optional[NotificationService] = None,
        user_service: Optional[UserService] = None,
    ):
        self.db = db if db is not None else get_db()
        self.notifier = notifier or get_notification_service()
        self.users = user_service or UserService(self.db)

    @property
    def active_users(self):
        return self.db.collection(collections.USERS)

    @property
    def suspended_users(self):
        return self.db.collection(collections.SUSPENDED_USERS)

    def suspend(self, principal: Principal, user_id, reason: Optional[str] = None) -> Dict:
        """
        Snapshot the active user into suspended_users, then delete the active user.

        Raises:
            ForbiddenError: Caller is not an administrator
            ValidationError: Unresolvable user id
            ConflictError: User is already suspended
            NotFoundError: No active user with this id
        """
        require_role(principal, Role.ADMINISTRATOR)
        uid = normalize_id(user_id)
        if not uid:
            raise ValidationError("User id is required", field="user_id")

        existing = first_match(self.suspended_users, "original_user_id", uid)
        if existing:
            raise ConflictError("User is already suspended", user_id=uid, suspended_record_id=existing["id"])

        user = self.users.get_active_user(uid)
        if not user:
            raise NotFoundError("User not found", user_id=uid)

        record = {k: v for k, v in user.items() if k != "id"}
        record.update({
            "original_user_id": uid,
            "suspended": True,
            "suspended_at": utcnow(),
            "suspension_reason": (reason or "").strip(),
            "suspended_by": principal.user_id,
        })

        record_ref = self.suspended_users.document()
        record_ref.set(record)
        logger.info(f"Suspended record {record_ref.id} created for user {uid}")

        self.active_users.document(uid).delete()
        logger.info(f"✅ User {uid} suspended by {principal.user_id}")

        self._notify(record, templates.user_suspended(display_name(record) or "there", record["suspension_reason"]))

        record["id"] = record_ref.id
        return {
            "message": "User suspended successfully",
            "user": self.users.format_user(record, suspended=True),
            "suspended_record_id": record_ref.id,
            "already_restored": False,
        }

    def unsuspend(self, principal: Principal, identifier) -> Dict:
        """
        Restore a suspended user under their original id.

        identifier may be the suspended record id or the original user id.

        Raises:
            ForbiddenError: Caller is not an administrator
            NotFoundError: No suspended record matches
        """
        require_role(principal, Role.ADMINISTRATOR)
        record = self.users.find_suspended(identifier)
        if not record:
            raise NotFoundError("Suspended user not found", identifier=normalize_id(identifier))

        record_id = record["id"]
        uid = normalize_id(record.get("original_user_id")) or record_id

        active = self.users.get_active_user(uid)
        if active:
            # A previous restore got as far as recreating the user
            self.suspended_users.document(record_id).delete()
            logger.warning(f"⚠️ User {uid} was already active; removed stray suspended record {record_id}")
            return {
                "message": "User was already active",
                "user": self.users.format_user(active),
                "suspended_record_id": record_id,
                "already_restored": True,
            }

        restored = {k: v for k, v in record.items() if k not in SUSPENSION_FIELDS}
        user_ref = self.active_users.document(uid)
        try:
            user_ref.create(restored)
        except AlreadyExists:
            logger.warning(f"⚠️ User document {uid} appeared during restore; merging")
            user_ref.set(restored, merge=True)

        self.suspended_users.document(record_id).delete()
        logger.info(f"✅ User {uid} unsuspended by {principal.user_id}")

        self._notify(restored, templates.user_unsuspended(display_name(restored) or "there"))

        return {
            "message": "User unsuspended successfully",
            "user": self.users.format_user({**restored, "id": uid}),
            "suspended_record_id": record_id,
            "already_restored": False,
        }

    def _notify(self, user: Dict, template) -> bool:
        try:
            return self.notifier.send_template(user.get("email"), template)
        except Exception as e:
            logger.warning(f"⚠️ Suspension notification failed: {e}", exc_info=True)
            return False


# Global manager instance (singleton pattern)
_suspension_manager: Optional[UserSuspensionManager] = None


def get_suspension_manager() -> UserSuspensionManager:
    global _suspension_manager
    if _suspension_manager is None:
        _suspension_manager = UserSuspensionManager(user_service=get_user_service())
    return _suspension_manager
