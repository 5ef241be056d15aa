"""
Comment Service - Handle comments on reports.

Comments are embedded in the report document. Each one snapshots the
author's display fields at write time, so later profile changes or a
suspension do not alter existing comments.
"""

from typing import Dict, List, Optional
import logging
import uuid

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from fixit.services.report_documents import normalize_comment
from fixit.services.user_service import UserService, display_name, get_user_service, profile_picture_url
from fixit.utils.firestore_helpers import doc_to_dict, utcnow
from fixit.utils.identity import normalize_id, same_identity

logger = logging.getLogger(__name__)


class CommentService:
    """Service for managing comments on reports."""

    def __init__(self, db=None, user_service: Optional[UserService] = None):
        self.db = db if db is not None else get_db()
        self.users = user_service or UserService(self.db)

    def list_comments(self, report_id) -> List[Dict]:
        report = self._get_report(report_id)
        return [normalize_comment(c) for c in report.get("comments") or []]

    def add_comment(self, report_id, author_id, text: str) -> List[Dict]:
        """
        Add a comment to a report.

        Returns:
            The report's full comment list

        Raises:
            ValidationError: Empty text
            NotFoundError: Report absent, or author is not an active user
        """
        text = self._require_text(text)
        report = self._get_report(report_id)

        author = self.users.get_active_user(author_id)
        if not author:
            raise NotFoundError("User not found", user_id=normalize_id(author_id))

        comment = {
            "id": uuid.uuid4().hex,
            "user_id": author["id"],
            "user": display_name(author) or "Unknown",
            "f_name": author.get("f_name") or "",
            "l_name": author.get("l_name") or "",
            "email": author.get("email") or "",
            "barangay": author.get("barangay") or "",
            "municipality": author.get("municipality") or "",
            "profile_picture": profile_picture_url(author),
            "text": text,
            "created_at": utcnow(),
            "edited_at": None,
        }
        comments = list(report.get("comments") or []) + [comment]
        self._save(report["id"], comments)

        logger.info(f"Comment {comment['id']} added to report {report['id']} by {author['id']}")
        return [normalize_comment(c) for c in comments]

    def edit_comment(self, report_id, comment_id, caller_id, text: str) -> Dict:
        """
        Author-only edit.

        Raises:
            ForbiddenError: Caller did not write the comment
        """
        text = self._require_text(text)
        report = self._get_report(report_id)
        comments = list(report.get("comments") or [])
        index = self._find(comments, comment_id, report["id"])
        self._require_author(comments[index], caller_id, "edit")

        edited = {**comments[index], "text": text, "edited_at": utcnow()}
        comments[index] = edited
        self._save(report["id"], comments)

        logger.info(f"Comment {comment_id} on report {report['id']} edited")
        return normalize_comment(edited)

    def delete_comment(self, report_id, comment_id, caller_id) -> List[Dict]:
        report = self._get_report(report_id)
        comments = list(report.get("comments") or [])
        index = self._find(comments, comment_id, report["id"])
        self._require_author(comments[index], caller_id, "delete")

        del comments[index]
        self._save(report["id"], comments)

        logger.info(f"Comment {comment_id} on report {report['id']} deleted")
        return [normalize_comment(c) for c in comments]

    def _get_report(self, report_id) -> Dict:
        rid = normalize_id(report_id)
        report = doc_to_dict(self.db.collection(collections.REPORTS).document(rid).get()) if rid else None
        if report is None:
            raise NotFoundError("Report not found", report_id=rid)
        return report

    def _save(self, report_id: str, comments: List[Dict]) -> None:
        self.db.collection(collections.REPORTS).document(report_id).update({"comments": comments})

    @staticmethod
    def _require_text(text: Optional[str]) -> str:
        if not text or not text.strip():
            raise ValidationError("Comment text is required", field="text")
        return text.strip()

    @staticmethod
    def _find(comments: List[Dict], comment_id, report_id: str) -> int:
        for index, comment in enumerate(comments):
            if same_identity(comment.get("id") or comment.get("_id"), comment_id):
                return index
        raise NotFoundError("Comment not found", report_id=report_id, comment_id=normalize_id(comment_id))

    @staticmethod
    def _require_author(comment: Dict, caller_id, action: str) -> None:
        author = comment.get("user_id") or comment.get("userId")
        if not same_identity(author, caller_id):
            raise ForbiddenError(f"Only the author can {action} this comment", comment_id=comment.get("id"))


# Global service instance (singleton pattern)
_comment_service: Optional[CommentService] = None


def get_comment_service() -> CommentService:
    global _comment_service
    if _comment_service is None:
        _comment_service = CommentService(user_service=get_user_service())
    return _comment_service
