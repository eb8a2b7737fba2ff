"""
Attempt Ledger
==============
Ephemeral failed-verification and resend counters.
"""

from typing import Optional

import structlog

from ..config import AuthConfig
from ..kv import KVStore, keys
from ..masking import mask_email
from .models import OtpPurpose

logger = structlog.get_logger(__name__)


class AttemptLedger:
    """Counts failed verifications per (purpose, identity) and resends per identity."""

    def __init__(self, kv: KVStore, config: Optional[AuthConfig] = None):
        self.kv = kv
        self.config = config or AuthConfig()

    async def track_attempt(self, identity: str, purpose: OtpPurpose) -> int:
        """Record a failed verification; returns the count in the current OTP window."""
        count = await self.kv.increment_counter(
            keys.attempts_key(purpose.value, identity),
            self.config.otp_expiry_seconds,
        )
        logger.debug(
            "OTP attempt tracked",
            identity=mask_email(identity),
            purpose=purpose.value,
            count=count,
        )
        return count

    async def attempt_count(self, identity: str, purpose: OtpPurpose) -> int:
        return int(await self.kv.get(keys.attempts_key(purpose.value, identity)) or 0)

    async def remaining_attempts(self, identity: str, purpose: OtpPurpose) -> int:
        count = await self.attempt_count(identity, purpose)
        return max(0, self.config.max_otp_attempts - count)

    async def reset_attempts(self, identity: str, purpose: OtpPurpose) -> None:
        await self.kv.delete(keys.attempts_key(purpose.value, identity))

    async def reset_all_attempts(self, identity: str) -> None:
        """Clear the counters of every purpose, used when the account row is forgiven."""
        for purpose in OtpPurpose:
            await self.reset_attempts(identity, purpose)

    async def can_resend(self, identity: str) -> bool:
        count = int(await self.kv.get(keys.resend_key(identity)) or 0)
        return count < self.config.max_resend_attempts

    async def track_resend(self, identity: str) -> int:
        return await self.kv.increment_counter(
            keys.resend_key(identity),
            self.config.resend_window_seconds,
        )
