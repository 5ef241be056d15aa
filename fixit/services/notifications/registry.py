"""
Notification Provider Registry.

Selects the email provider from settings, once per process.
"""

from typing import Optional
import logging

from fixit.core.settings import settings
from fixit.services.notifications.base import NotificationProvider
from fixit.services.notifications.brevo_provider import BrevoEmailProvider
from fixit.services.notifications.log_provider import LoggingEmailProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[NotificationProvider] = None


def get_notification_provider() -> NotificationProvider:
    """
    Resolve the active email provider.

    Rules:
    - EMAIL_PROVIDER=brevo with BREVO_API_KEY set: Brevo.
    - Anything else: logging provider (nothing is delivered).
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    provider_name = (settings.EMAIL_PROVIDER or "log").lower()

    if provider_name == "brevo":
        brevo = BrevoEmailProvider(api_key=settings.BREVO_API_KEY)
        if brevo.is_enabled():
            _provider_instance = brevo
            logger.info("✅ Email provider initialized: brevo")
            return _provider_instance
        logger.warning("EMAIL_PROVIDER=brevo but BREVO_API_KEY is missing; falling back to log provider")

    _provider_instance = LoggingEmailProvider()
    logger.info("✅ Email provider initialized: log (no delivery)")
    return _provider_instance
