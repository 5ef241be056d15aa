"""
Logging Email Provider - used when no real provider is configured.

Nothing is delivered; every message is logged and kept in an outbox so
local runs and tests can inspect what would have been sent.
"""

from typing import Dict, List
import logging

from fixit.services.notifications.base import NotificationProvider

logger = logging.getLogger(__name__)


class LoggingEmailProvider(NotificationProvider):
    """Always-available fallback provider."""

    PROVIDER_NAME = "log"

    def __init__(self):
        self.outbox: List[Dict[str, str]] = []

    def is_enabled(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return self.PROVIDER_NAME

    def send_email(self, recipient: str, subject: str, html: str) -> bool:
        self.outbox.append({"to": recipient, "subject": subject, "html": html})
        logger.info(f"📧 [log provider] to={recipient} subject={subject!r}")
        return True
