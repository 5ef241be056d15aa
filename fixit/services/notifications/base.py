"""
Notification Provider Base Interface.

Defines the contract for outbound email providers.
All providers must implement this interface.
"""

from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class NotificationProvider(ABC):
    """
    Abstract base class for email providers.

    Providers report delivery as a bool and may raise on transport errors;
    NotificationService turns both into a logged failure.
    """

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if this provider is configured and ready.

        Returns:
            True if provider can send, False otherwise
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        pass

    @abstractmethod
    def send_email(self, recipient: str, subject: str, html: str) -> bool:
        """
        Deliver one email.

        Args:
            recipient: Destination address
            subject: Subject line
            html: HTML body

        Returns:
            True if the provider accepted the message
        """
        pass
