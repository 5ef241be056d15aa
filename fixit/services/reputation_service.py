"""
Reputation Service - points and counters on a resident's profile.

Awards are fire-and-forget from the lifecycle's point of view: callers catch
and log any failure, and a failed award never undoes a report transition.
"""

from typing import Dict, Optional
import logging

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.exceptions import DependencyFailure
from fixit.core.settings import settings
from fixit.utils.identity import normalize_id

logger = logging.getLogger(__name__)

DEFAULT_REPUTATION: Dict = {
    "points": 0,
    "level": "Newcomer",
    "badges": [],
    "total_reports": 0,
    "verified_reports": 0,
    "resolved_reports": 0,
    "helpful_votes": 0,
}

# (minimum points, level name), highest first
LEVELS = (
    (500, "Community Champion"),
    (200, "Civic Leader"),
    (75, "Active Citizen"),
    (25, "Contributor"),
    (0, "Newcomer"),
)

# counter -> (threshold, badge)
BADGES = {
    "verified_reports": (5, "Trusted Reporter"),
    "resolved_reports": (5, "Problem Solver"),
}


def level_for_points(points: int) -> str:
    for minimum, name in LEVELS:
        if points >= minimum:
            return name
    return LEVELS[-1][1]


def default_reputation() -> Dict:
    return {**DEFAULT_REPUTATION, "badges": []}


class ReputationService:
    """Updates the reputation map stored on active user documents."""

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def award_verified_report(self, user_id) -> Dict:
        return self._award(user_id, settings.VERIFIED_REPORT_POINTS, "verified_reports")

    def award_resolved_report(self, user_id) -> Dict:
        return self._award(user_id, settings.RESOLVED_REPORT_POINTS, "resolved_reports")

    def _award(self, user_id, points: int, counter: str) -> Dict:
        """
        Add points and bump a counter.

        Raises:
            DependencyFailure: If the user is not in the active store
        """
        uid = normalize_id(user_id)
        if not uid:
            raise DependencyFailure("reputation", "unresolvable user id")

        user_ref = self.db.collection(collections.USERS).document(uid)
        snapshot = user_ref.get()
        if not snapshot.exists:
            raise DependencyFailure("reputation", f"user {uid} is not active", user_id=uid)

        reputation = {**default_reputation(), **((snapshot.to_dict() or {}).get("reputation") or {})}
        reputation["points"] = int(reputation.get("points", 0)) + points
        reputation[counter] = int(reputation.get(counter, 0)) + 1
        reputation["level"] = level_for_points(reputation["points"])

        threshold, badge = BADGES[counter]
        badges = list(reputation.get("badges") or [])
        if reputation[counter] >= threshold and badge not in badges:
            badges.append(badge)
        reputation["badges"] = badges

        user_ref.update({"reputation": reputation})
        logger.info(f"✅ Awarded {points} points to {uid} for {counter} (total {reputation['points']})")
        return reputation


# Global service instance (singleton pattern)
_reputation_service: Optional[ReputationService] = None


def get_reputation_service() -> ReputationService:
    global _reputation_service
    if _reputation_service is None:
        _reputation_service = ReputationService()
    return _reputation_service
