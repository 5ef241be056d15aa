"""
User Service - residents across the active and suspended stores.

A user lives in exactly one of two collections:
- users:            active accounts, document id == user id
- suspended_users:  snapshots keyed by their own id, carrying original_user_id

Lookups that must survive a suspension (report owners, admin listings) go
through resolve_user(), which checks the active store first and then the
suspended store, always exposing the ORIGINAL user id.
"""

from datetime import timedelta
from typing import Dict, List, Optional
import logging

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.exceptions import ConflictError, NotFoundError, ValidationError
from fixit.core.settings import settings
from fixit.models.user import UserCreate
from fixit.services.reputation_service import default_reputation
from fixit.utils.firestore_helpers import (
    doc_to_dict,
    first_match,
    sort_newest_first,
    stream_to_dicts,
    to_datetime,
    utcnow,
)
from fixit.utils.identity import normalize_id

logger = logging.getLogger(__name__)


def display_name(user: Optional[Dict]) -> str:
    if not user:
        return ""
    return f"{user.get('f_name') or ''} {user.get('l_name') or ''}".strip()


def profile_picture_url(user: Optional[Dict]) -> str:
    """Profile pictures were stored either as a URL or as {"url": ...}."""
    picture = (user or {}).get("profile_picture")
    if isinstance(picture, dict):
        return picture.get("url") or ""
    return picture or ""


class UserService:
    """
    Service for user management in Firestore.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_active_user(self, user_id) -> Optional[Dict]:
        uid = normalize_id(user_id)
        if not uid:
            return None
        return doc_to_dict(self.db.collection(collections.USERS).document(uid).get())

    def find_suspended(self, identifier) -> Optional[Dict]:
        """
        Find a suspended record by its own id OR by original_user_id.
        """
        key = normalize_id(identifier)
        if not key:
            return None

        suspended_ref = self.db.collection(collections.SUSPENDED_USERS)
        record = doc_to_dict(suspended_ref.document(key).get())
        if record:
            return record
        return first_match(suspended_ref, "original_user_id", key)

    def resolve_user(self, identifier) -> Optional[Dict]:
        """
        Resolve a user in the active store, then the suspended store.

        Returns:
            User dict with "id" set to the original user id and a
            "suspended" flag, or None if the user exists in neither store
        """
        active = self.get_active_user(identifier)
        if active:
            active["suspended"] = False
            return active

        record = self.find_suspended(identifier)
        if record:
            resolved = dict(record)
            resolved["suspended_record_id"] = record["id"]
            resolved["id"] = normalize_id(record.get("original_user_id")) or record["id"]
            resolved["suspended"] = True
            return resolved
        return None

    def owner_summary(self, identifier) -> Optional[Dict]:
        user = self.resolve_user(identifier)
        if not user:
            return None
        return {
            "id": user["id"],
            "name": display_name(user),
            "email": user.get("email"),
            "profile_picture": profile_picture_url(user) or None,
            "suspended": user.get("suspended", False),
        }

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, user_id, payload: UserCreate) -> Dict:
        """
        Create the active profile for an authenticated account.

        Raises:
            ValidationError: Unresolvable user id
            ConflictError: Already registered, or currently suspended
        """
        uid = normalize_id(user_id)
        if not uid:
            raise ValidationError("User id is required", field="user_id")

        if self.get_active_user(uid):
            raise ConflictError("User is already registered", user_id=uid)
        if self.find_suspended(uid):
            raise ConflictError("User account is suspended", user_id=uid)

        now = utcnow()
        user_data = {
            "f_name": payload.f_name.strip(),
            "l_name": payload.l_name.strip(),
            "email": payload.email.strip(),
            "address": payload.address or "",
            "barangay": payload.barangay or "",
            "municipality": payload.municipality or "",
            "contact": payload.contact or "",
            "profile_picture": payload.profile_picture or "",
            "reputation": default_reputation(),
            "last_login": now,
            "created_at": now,
        }
        self.db.collection(collections.USERS).document(uid).create(user_data)
        logger.info(f"User registered: {uid}")
        return {**user_data, "id": uid}

    # ------------------------------------------------------------------
    # Admin listings
    # ------------------------------------------------------------------
    def format_user(self, user: Dict, suspended: bool = False) -> Dict:
        """Shape a user or suspended record for admin responses."""
        user_id = normalize_id(user.get("original_user_id")) if suspended else None
        formatted = {
            "id": user_id or normalize_id(user.get("id")),
            "name": display_name(user),
            "email": user.get("email"),
            "address": user.get("address") or user.get("barangay") or "No address provided",
            "suspended": suspended,
            "last_login": to_datetime(user.get("last_login")),
            "created_at": to_datetime(user.get("created_at")),
            "reputation": user.get("reputation"),
        }
        if suspended:
            formatted.update({
                "suspended_at": to_datetime(user.get("suspended_at")),
                "suspension_reason": user.get("suspension_reason"),
                "suspended_by": normalize_id(user.get("suspended_by")),
            })
        return formatted

    def list_all_users(self) -> List[Dict]:
        """
        All users from both stores.

        Suspended users are listed under their original id so the admin UI
        keeps a stable identity across suspension.
        """
        active = sort_newest_first(
            stream_to_dicts(self.db.collection(collections.USERS).stream()), "created_at"
        )
        suspended = self._suspended_records()

        users = [self.format_user(u) for u in active]
        users.extend(self.format_user(s, suspended=True) for s in suspended)
        return users

    def list_suspended(self) -> List[Dict]:
        return [self.format_user(s, suspended=True) for s in self._suspended_records()]

    def get_user_details(self, identifier) -> Dict:
        """
        Raises:
            NotFoundError: User exists in neither store
        """
        user = self.resolve_user(identifier)
        if not user:
            raise NotFoundError("User not found", user_id=normalize_id(identifier))

        formatted = self.format_user(user, suspended=user["suspended"])
        formatted["id"] = user["id"]
        reports = self.db.collection(collections.REPORTS).where("user_id", "==", user["id"]).stream()
        formatted["report_count"] = sum(1 for _ in reports)
        return formatted

    def user_stats(self) -> Dict:
        active = stream_to_dicts(self.db.collection(collections.USERS).stream())
        suspended_count = sum(1 for _ in self.db.collection(collections.SUSPENDED_USERS).stream())
        total_reports = sum(1 for _ in self.db.collection(collections.REPORTS).stream())

        cutoff = utcnow() - timedelta(days=settings.ACTIVE_USER_WINDOW_DAYS)
        recently_active = 0
        for user in active:
            last_login = to_datetime(user.get("last_login"))
            if last_login is None:
                continue
            if last_login.tzinfo is None:
                last_login = last_login.replace(tzinfo=cutoff.tzinfo)
            if last_login >= cutoff:
                recently_active += 1

        return {
            "total_users": len(active) + suspended_count,
            "active_users": len(active),
            "recently_active_users": recently_active,
            "suspended_users": suspended_count,
            "total_reports": total_reports,
        }

    def _suspended_records(self) -> List[Dict]:
        records = stream_to_dicts(self.db.collection(collections.SUSPENDED_USERS).stream())
        return sort_newest_first(records, "suspended_at")


# Global service instance (singleton pattern)
_user_service = None


def get_user_service() -> UserService:
    """
    Get or create UserService singleton instance.

    Returns:
        UserService: The global user service instance
    """
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
