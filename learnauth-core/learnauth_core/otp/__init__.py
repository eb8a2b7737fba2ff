"""
OTP Issuance and Verification
=============================
One-time codes scoped by (identity, purpose) with attempt and resend tracking.
"""

from .models import OtpPurpose, OtpRecord
from .hashing import generate_otp, new_salt, digest_otp, otp_matches
from .issuer import OtpIssuer
from .ledger import AttemptLedger

__all__ = [
    # Models
    "OtpPurpose",
    "OtpRecord",
    # Codes
    "generate_otp",
    "new_salt",
    "digest_otp",
    "otp_matches",
    # Components
    "OtpIssuer",
    "AttemptLedger",
]
