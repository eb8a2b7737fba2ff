"""
Account Models
==============
The slice of the persistent user record the auth core reads and writes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class UserRole(str, Enum):
    """Platform roles, highest privilege first."""
    PLATFORM_ADMIN = "PlatformAdmin"
    CLIENT_ADMIN = "ClientAdmin"
    MANAGER = "Manager"
    LEARNER = "Learner"


@dataclass
class User:
    """A user row as seen by the auth flows."""
    id: int
    email: str
    password_hash: Optional[str] = None
    role: str = UserRole.LEARNER.value
    org_id: Optional[int] = None
    name: Optional[str] = None
    failed_otp_attempts: int = 0
    account_locked_until: Optional[datetime] = None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def summary(self) -> Dict[str, Any]:
        """Public fields returned alongside a session token."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }
