"""
Identity Normalizer - one comparable string form for every identifier.

Identifiers reach the services in many shapes: Firestore document references
and snapshots, plain strings, wrapper strings such as ``ObjectId("abc")`` or
``Ref('abc')`` left over from imported data, JSON object strings, and dicts
such as ``{"$oid": "abc"}``, ``{"_id": "abc"}`` or ``{"uid": "abc"}``.

CRITICAL: callers use this inside authorization checks. It never raises and
returns None ("unresolvable") for anything it cannot canonicalize, and
same_identity() treats an unresolvable side as a mismatch.
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Keys checked in order when an identity arrives inside a mapping
IDENTITY_KEYS = ("$oid", "_id", "id", "uid", "user_id", "userId")

# Strings that look like values but carry no identity
_EMPTY_MARKERS = {"[object object]", "none", "null", "undefined"}

# Name("value") / Name('value') / Name(value)
_WRAPPER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\(\s*([\"']?)(.+?)\1\s*\)$")

# Nested wrappers / dicts are unwrapped at most this deep
_MAX_DEPTH = 5


def normalize_id(value: Any) -> Optional[str]:
    """
    Canonicalize an identifier.

    Args:
        value: Any supported identity representation

    Returns:
        Canonical string identity, or None if unresolvable
    """
    try:
        return _normalize(value, 0)
    except Exception as e:
        logger.warning(f"Identity normalization failed for {type(value).__name__}: {e}")
        return None


def same_identity(left: Any, right: Any) -> bool:
    """True only when both sides resolve and are equal."""
    left_id = normalize_id(left)
    right_id = normalize_id(right)
    if left_id is None or right_id is None:
        return False
    return left_id == right_id


def _normalize(value: Any, depth: int) -> Optional[str]:
    if depth > _MAX_DEPTH:
        return None

    # bool is an int subclass; True/False are never identities
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        return _normalize_string(value, depth)

    if isinstance(value, int):
        return str(value)

    if isinstance(value, dict):
        for key in IDENTITY_KEYS:
            if key in value and value[key] is not None:
                resolved = _normalize(value[key], depth + 1)
                if resolved:
                    return resolved
        return None

    # Firestore DocumentReference / DocumentSnapshot and similar objects
    nested = getattr(value, "id", None)
    if nested is not None and nested is not value:
        return _normalize(nested, depth + 1)

    return None


def _normalize_string(value: str, depth: int) -> Optional[str]:
    trimmed = value.strip()
    if not trimmed or trimmed.lower() in _EMPTY_MARKERS:
        return None

    wrapped = _WRAPPER_RE.match(trimmed)
    if wrapped:
        return _normalize(wrapped.group(2), depth + 1)

    if trimmed.startswith("{") and trimmed.endswith("}"):
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            return trimmed
        return _normalize(parsed, depth + 1)

    return trimmed
