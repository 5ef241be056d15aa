"""
Notification Service - best-effort outbound email.

DESIGN PRINCIPLES:
- Notifications are side effects; they never decide an operation's outcome
- Every provider failure (False result or exception) is logged as a
  DependencyFailure and reported to the caller as False
- One provider instance per process, injected by reference
"""

from typing import Optional
import logging

from fixit.core.exceptions import DependencyFailure
from fixit.services.notifications.base import NotificationProvider
from fixit.services.notifications.registry import get_notification_provider
from fixit.services.notifications.templates import EmailTemplate

logger = logging.getLogger(__name__)


class NotificationService:
    """Wraps a provider with failure isolation."""

    def __init__(self, provider: Optional[NotificationProvider] = None):
        self.provider = provider or get_notification_provider()

    def send(self, recipient: Optional[str], subject: str, body: str) -> bool:
        """
        Send one email.

        Returns:
            True on success, False on any failure (never raises)
        """
        if not recipient:
            logger.info(f"Skipping notification {subject!r}: recipient has no address")
            return False

        try:
            if not self.provider.send_email(recipient, subject, body):
                raise DependencyFailure(
                    "notification",
                    f"{self.provider.get_provider_name()} rejected message",
                    recipient=recipient,
                )
            return True
        except DependencyFailure as e:
            logger.warning(f"⚠️ {e.message} ({subject!r} to {recipient})")
            return False
        except Exception as e:
            failure = DependencyFailure("notification", str(e), recipient=recipient)
            logger.warning(f"⚠️ {failure.message} ({subject!r})", exc_info=True)
            return False

    def send_template(self, recipient: Optional[str], template: EmailTemplate) -> bool:
        return self.send(recipient, template.subject, template.html)


# Global service instance (singleton pattern)
_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """
    Get or create NotificationService singleton instance.

    Returns:
        NotificationService: The global notification service instance
    """
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
