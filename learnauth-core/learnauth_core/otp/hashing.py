"""
OTP Codes
=========
Numeric code generation and the salted digest kept in place of the code.
"""

import hashlib
import hmac
import secrets

DIGITS = "0123456789"
SALT_BYTES = 16


def generate_otp(length: int = 6) -> str:
    """
    Draw a numeric code, one CSPRNG digit at a time.

    Leading zeros are as likely as any other digit, so the result is
    always exactly ``length`` characters.
    """
    if length < 1:
        raise ValueError("OTP length must be at least 1")
    return "".join(secrets.choice(DIGITS) for _ in range(length))


def new_salt() -> str:
    return secrets.token_hex(SALT_BYTES)


def digest_otp(code: str, salt: str) -> str:
    """HMAC-SHA256 of the code keyed by its salt, hex encoded."""
    return hmac.new(salt.encode(), code.encode(), hashlib.sha256).hexdigest()


def otp_matches(code: str, salt: str, expected_digest: str) -> bool:
    return hmac.compare_digest(digest_otp(code, salt), expected_digest)
