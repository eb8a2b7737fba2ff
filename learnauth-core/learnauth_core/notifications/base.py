"""
Notification Sink
=================
Contract for delivering a one-time code to its destination.
"""

from abc import ABC, abstractmethod

from ..otp.models import OtpPurpose


class NotificationSink(ABC):
    """Delivers OTPs; a raised exception fails the initiating flow."""

    @abstractmethod
    async def deliver(
        self,
        destination: str,
        code: str,
        purpose: OtpPurpose,
        expiry_minutes: int,
    ) -> None:
        """
        Send ``code`` to ``destination``.

        Raises:
            NotificationDeliveryError: If the message could not be handed off
        """
