"""
Rate Window Models
==================
Scopes a window can be keyed on and the outcome of counting one request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RateScope(str, Enum):
    IP = "ip"
    REGISTER = "register"
    LOGIN = "login"
    RESEND = "resend"
    VERIFY = "verify"


@dataclass
class RateLimitInfo:
    """
    Decision for one request against a fixed window.

    ``reset_at`` is the Unix time the window closes. ``retry_after`` is
    only set on rejection and holds the seconds left in the window.
    """
    allowed: bool
    remaining: int
    limit: int
    reset_at: int
    retry_after: Optional[int] = None
