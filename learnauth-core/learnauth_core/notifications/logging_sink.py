"""
Logging Sink
============
Development sink that keeps deliveries in memory instead of sending mail.
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog

from ..masking import mask_email
from ..otp.models import OtpPurpose
from .base import NotificationSink

logger = structlog.get_logger(__name__)


@dataclass
class Delivery:
    destination: str
    code: str
    purpose: OtpPurpose
    expiry_minutes: int


class LoggingSink(NotificationSink):
    """
    Records every delivery in ``outbox``.

    Only the masked destination and purpose reach the log; read the code
    from ``outbox`` (or ``last_code``) in local setups and tests.
    """

    def __init__(self):
        self.outbox: List[Delivery] = []

    @property
    def call_count(self) -> int:
        return len(self.outbox)

    def last_code(self, destination: Optional[str] = None) -> Optional[str]:
        for delivery in reversed(self.outbox):
            if destination is None or delivery.destination.lower() == destination.lower():
                return delivery.code
        return None

    async def deliver(
        self,
        destination: str,
        code: str,
        purpose: OtpPurpose,
        expiry_minutes: int,
    ) -> None:
        self.outbox.append(Delivery(destination, code, OtpPurpose(purpose), expiry_minutes))
        logger.info(
            "OTP queued in logging sink",
            destination=mask_email(destination),
            purpose=OtpPurpose(purpose).value,
            expiry_minutes=expiry_minutes,
        )
