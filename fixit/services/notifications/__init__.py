"""
Outbound notifications (email).

Best-effort by contract: callers get True/False, never an exception.
"""

from fixit.services.notifications import templates
from fixit.services.notifications.base import NotificationProvider
from fixit.services.notifications.brevo_provider import BrevoEmailProvider
from fixit.services.notifications.log_provider import LoggingEmailProvider
from fixit.services.notifications.registry import get_notification_provider
from fixit.services.notifications.service import NotificationService, get_notification_service

__all__ = [
    "templates",
    "NotificationProvider",
    "BrevoEmailProvider",
    "LoggingEmailProvider",
    "NotificationService",
    "get_notification_provider",
    "get_notification_service",
]
