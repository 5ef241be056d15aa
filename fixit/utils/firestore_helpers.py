"""
Firestore query and document helpers shared by the services.

NOTE: For firebase_admin SDK, we use positional arguments in where() which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = (
    "created_at",
    "updated_at",
    "edited_at",
    "resolved_at",
    "verified_at",
    "suspended_at",
    "last_login",
    "geo_tagged_at",
)


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "status", "==", "pending")
        query = where_filter(query, "user_id", "==", user_id)
    """
    return query.where(field_path, op_string, value)


def utcnow() -> datetime:
    """Timezone-aware current time used for every stored timestamp."""
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a stored timestamp into a datetime.

    Handles datetimes, Firestore Timestamp / DatetimeWithNanoseconds objects
    and ISO-8601 strings. Unknown types return None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if hasattr(value, "to_datetime"):
        try:
            return value.to_datetime()
        except Exception as e:
            logger.warning(f"Failed to convert Firestore timestamp: {e}")
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    logger.warning(f"Unknown timestamp type: {type(value)}")
    return None


def convert_timestamps(data: Dict) -> Dict:
    """Convert known timestamp fields of a document dict in place."""
    for field in TIMESTAMP_FIELDS:
        if field in data and data[field] is not None:
            data[field] = to_datetime(data[field])
    return data


def doc_to_dict(doc) -> Optional[Dict]:
    """
    Convert a document snapshot to a dict carrying its id.

    Returns None for snapshots of missing documents.
    """
    if doc is None or not doc.exists:
        return None
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return convert_timestamps(data)


def stream_to_dicts(docs: Iterable) -> List[Dict]:
    return [d for d in (doc_to_dict(doc) for doc in docs) if d is not None]


def first_match(collection, field_path: str, value) -> Optional[Dict]:
    """Return the first document whose field equals value, or None."""
    query = where_filter(collection, field_path, "==", value).limit(1)
    for doc in query.stream():
        return doc_to_dict(doc)
    return None


def sort_newest_first(items: List[Dict], field: str = "created_at") -> List[Dict]:
    oldest = datetime.min.replace(tzinfo=timezone.utc)

    def _key(item: Dict):
        value = to_datetime(item.get(field))
        if value is None:
            return oldest
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    return sorted(items, key=_key, reverse=True)
