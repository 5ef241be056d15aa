"""
Domain exceptions for the report lifecycle, moderation and suspension layer.

Every rejected operation raises one of these so the HTTP layer can return a
structured description of the invariant that was violated:

    {"detail": "...", "error": "conflict", "context": {...}}

DependencyFailure is raised by collaborator wrappers only. Managers catch it
at the side-effect boundary and never let it become the primary result.
"""

from typing import Any, Dict, Optional


class FixItError(Exception):
    """Base class for all domain errors."""

    code = "error"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "error": self.code,
            "context": self.context,
        }


class NotFoundError(FixItError):
    """Referenced report, user, comment or flag is absent."""

    code = "not_found"
    status_code = 404


class ValidationError(FixItError):
    """Missing required field, out-of-enum value, missing proof media."""

    code = "validation_error"
    status_code = 422


class ForbiddenError(FixItError):
    """Role or ownership mismatch."""

    code = "forbidden"
    status_code = 403


class ConflictError(FixItError):
    """Duplicate flag, duplicate suspension, duplicate registration."""

    code = "conflict"
    status_code = 409


class InvalidTransitionError(ConflictError):
    """Report is not in a state that allows the requested transition."""

    code = "invalid_transition"

    def __init__(self, current_status: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot {requested} a report in status '{current_status}'",
            current_status=current_status,
            requested=requested,
        )


class DependencyFailure(FixItError):
    """Notification, reputation or media-store call failed."""

    code = "dependency_failure"
    status_code = 502

    def __init__(self, dependency: str, message: str, **context: Any):
        super().__init__(f"{dependency} failed: {message}", dependency=dependency, **context)
        self.dependency = dependency
