"""
Shape helpers for the embedded parts of a report document.

Comments and flags are stored inside the report. Older documents carry
camelCase keys and un-normalised ids, so everything read back goes through
these helpers before it is compared or returned.
"""

from typing import Any, Dict, Optional, Tuple

from fixit.utils.firestore_helpers import to_datetime
from fixit.utils.identity import normalize_id

# Fields copied from a live report into its resolved record
REPORT_CONTENT_FIELDS = (
    "user_id",
    "title",
    "description",
    "category",
    "location",
    "latitude",
    "longitude",
    "geo_tagged",
    "is_urgent",
    "videos",
    "created_at",
    "updated_at",
)


def _first(data: Dict, *keys: str, default: Any = "") -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


def normalize_comment(comment: Dict) -> Dict:
    return {
        "id": normalize_id(comment.get("id") or comment.get("_id")) or "",
        "user_id": normalize_id(_first(comment, "user_id", "userId", default=None)),
        "user": _first(comment, "user", "author", default="Unknown"),
        "f_name": _first(comment, "f_name", "fName"),
        "l_name": _first(comment, "l_name", "lName"),
        "email": comment.get("email") or "",
        "barangay": comment.get("barangay") or "",
        "municipality": comment.get("municipality") or "",
        "profile_picture": _first(comment, "profile_picture", "profilePicture"),
        "text": comment.get("text") or "",
        "created_at": to_datetime(_first(comment, "created_at", "createdAt", default=None)),
        "edited_at": to_datetime(_first(comment, "edited_at", "editedAt", default=None)),
    }


def normalize_flag(flag: Dict) -> Dict:
    return {
        "user_id": normalize_id(_first(flag, "user_id", "userId", "user", default=None)),
        "reason": flag.get("reason") or "",
        "description": flag.get("description") or "",
        "created_at": to_datetime(_first(flag, "created_at", "createdAt", default=None)),
    }


def parse_coordinates(latitude: Any, longitude: Any) -> Tuple[Optional[float], Optional[float], bool]:
    """
    Parse a coordinate pair.

    Returns:
        (latitude, longitude, geo_tagged). geo_tagged is True only when both
        values parse and fall inside [-90, 90] / [-180, 180].
    """
    lat = _to_float(latitude)
    lng = _to_float(longitude)
    geo_tagged = (
        lat is not None
        and lng is not None
        and -90 <= lat <= 90
        and -180 <= lng <= 180
    )
    return lat, lng, geo_tagged


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    # NaN
    if parsed != parsed:
        return None
    return parsed
