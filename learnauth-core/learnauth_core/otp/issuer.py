"""
OTP Issuer
==========
Generates, stores, validates and deletes one-time codes per (identity, purpose).
"""

from typing import Optional

import structlog

from ..config import AuthConfig
from ..kv import KVStore, keys
from ..masking import mask_email
from .hashing import generate_otp, new_salt, digest_otp, otp_matches
from .models import OtpPurpose, OtpRecord

logger = structlog.get_logger(__name__)


class OtpIssuer:
    """
    One active code per (identity, purpose).

    ``validate`` never consumes the code. ``consume`` validates and removes
    it atomically, so a code grants at most one success.
    """

    def __init__(self, kv: KVStore, config: Optional[AuthConfig] = None):
        self.kv = kv
        self.config = config or AuthConfig()

    def generate(self) -> str:
        """Return a fresh numeric code of the configured length."""
        return generate_otp(self.config.otp_length)

    async def store(self, identity: str, code: str, purpose: OtpPurpose) -> None:
        """Store a code, replacing any previous one for the same key."""
        salt = new_salt()
        record = OtpRecord(salt=salt, code_hash=digest_otp(code, salt))
        await self.kv.set(
            keys.otp_key(purpose.value, identity),
            record.to_dict(),
            self.config.otp_expiry_seconds,
        )
        logger.info(
            "OTP stored",
            identity=mask_email(identity),
            purpose=purpose.value,
            expires_in=self.config.otp_expiry_seconds,
        )

    async def issue(self, identity: str, purpose: OtpPurpose) -> str:
        """Generate and store a code in one step, returning the plain code."""
        code = self.generate()
        await self.store(identity, code, purpose)
        return code

    async def validate(self, identity: str, code: str, purpose: OtpPurpose) -> bool:
        """Check a submitted code against the stored one."""
        if not code:
            return False

        data = await self.kv.get(keys.otp_key(purpose.value, identity))
        if data is None:
            return False

        record = OtpRecord.from_dict(data)
        return otp_matches(code, record.salt, record.code_hash)

    async def delete(self, identity: str, purpose: OtpPurpose) -> None:
        await self.kv.delete(keys.otp_key(purpose.value, identity))

    async def consume(self, identity: str, code: str, purpose: OtpPurpose) -> bool:
        """
        Validate and remove the code in one claim.

        A wrong code leaves the stored one in place. When several correct
        submissions race, only the caller whose pop removed the record wins.
        """
        if not await self.validate(identity, code, purpose):
            return False

        data = await self.kv.pop(keys.otp_key(purpose.value, identity))
        if data is None:
            return False

        # A resend may have replaced the record between validate and pop
        record = OtpRecord.from_dict(data)
        return otp_matches(code, record.salt, record.code_hash)
