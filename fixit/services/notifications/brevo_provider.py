"""
Brevo transactional email provider.

Used only when EMAIL_PROVIDER=brevo AND BREVO_API_KEY is set.
"""

from typing import Any, Dict, Optional
import logging

import requests

from fixit.core.settings import settings
from fixit.services.notifications.base import NotificationProvider

logger = logging.getLogger(__name__)


class BrevoEmailProvider(NotificationProvider):
    """Sends email through the Brevo v3 SMTP API."""

    PROVIDER_NAME = "brevo"
    BASE_URL = "https://api.brevo.com/v3/smtp/email"

    def __init__(
        self,
        api_key: Optional[str],
        sender_address: str = settings.EMAIL_SENDER_ADDRESS,
        sender_name: str = settings.EMAIL_SENDER_NAME,
        timeout: float = settings.EMAIL_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.sender_address = sender_address
        self.sender_name = sender_name
        self.timeout = timeout
        # One pooled HTTP session for the process lifetime
        self.session = requests.Session()

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def get_provider_name(self) -> str:
        return self.PROVIDER_NAME

    def send_email(self, recipient: str, subject: str, html: str) -> bool:
        if not self.api_key:
            logger.info("BrevoEmailProvider called without API key; message not sent.")
            return False

        payload: Dict[str, Any] = {
            "sender": {"name": self.sender_name, "email": self.sender_address},
            "to": [{"email": recipient}],
            "subject": subject,
            "htmlContent": html,
        }
        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }

        resp = self.session.post(self.BASE_URL, json=payload, headers=headers, timeout=self.timeout)
        if resp.status_code >= 300:
            logger.warning(f"Brevo send failed with status {resp.status_code}: {resp.text[:200]}")
            return False

        message_id = (resp.json() or {}).get("messageId") if resp.content else None
        logger.info(f"📧 Email accepted by Brevo for {recipient} (messageId={message_id})")
        return True
