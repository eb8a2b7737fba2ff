"""
OTP Models
==========
Purposes and stored record shape for one-time codes.
"""

from dataclasses import dataclass
from enum import Enum


class OtpPurpose(str, Enum):
    """Functional scope of an OTP and its attempt counter."""
    REGISTER = "register"
    LOGIN = "login"
    PASSWORD_RESET = "password_reset"


@dataclass
class OtpRecord:
    """Salted hash of an issued code, as kept in the KV store."""
    salt: str
    code_hash: str

    def to_dict(self) -> dict:
        return {"salt": self.salt, "hash": self.code_hash}

    @classmethod
    def from_dict(cls, data: dict) -> "OtpRecord":
        return cls(salt=data["salt"], code_hash=data["hash"])
