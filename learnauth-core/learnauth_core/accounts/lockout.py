"""
Account Lockout
===============
Progressive lockout over ``failed_otp_attempts`` / ``account_locked_until``.

States:
    ACTIVE  - account_locked_until is null or in the past
    LOCKED  - account_locked_until is in the future

Transitions:
    ACTIVE -> ACTIVE  failed verification, attempts below the threshold
    ACTIVE -> LOCKED  failed verification reaching the threshold
    *      -> ACTIVE  successful verification or resend forgiveness (reset)

The two fields only ever move together on reset; a lock never clears the
attempt count.
"""

import math
from datetime import datetime, timedelta
from enum import Enum

from .models import User


class AccountState(str, Enum):
    ACTIVE = "active"
    LOCKED = "locked"


class LockoutPolicy:
    """Applies the lockout state machine to a User in place."""

    def __init__(self, max_attempts: int = 5, lockout_minutes: int = 30):
        self.max_attempts = max_attempts
        self.lockout_minutes = lockout_minutes

    def state(self, user: User, now: datetime) -> AccountState:
        if user.account_locked_until is not None and user.account_locked_until > now:
            return AccountState.LOCKED
        return AccountState.ACTIVE

    def is_locked(self, user: User, now: datetime) -> bool:
        return self.state(user, now) is AccountState.LOCKED

    def minutes_remaining(self, user: User, now: datetime) -> int:
        """Whole minutes (rounded up) until the lock lifts; 0 when active."""
        if not self.is_locked(user, now):
            return 0
        seconds = (user.account_locked_until - now).total_seconds()
        return max(1, math.ceil(seconds / 60))

    def record_failure(self, user: User, now: datetime, observed_attempts: int = 0) -> AccountState:
        """
        Count one failed verification.

        ``observed_attempts`` is an atomically maintained count of failures
        for the same code. The larger of it and the row count plus one wins,
        so concurrent failures that all read a stale row still lock.

        Returns:
            The resulting state; LOCKED when this failure hit the threshold
        """
        user.failed_otp_attempts = max((user.failed_otp_attempts or 0) + 1, observed_attempts)
        if user.failed_otp_attempts >= self.max_attempts:
            user.account_locked_until = now + timedelta(minutes=self.lockout_minutes)
            return AccountState.LOCKED
        return AccountState.ACTIVE

    def remaining_attempts(self, user: User) -> int:
        return max(0, self.max_attempts - (user.failed_otp_attempts or 0))

    def reset(self, user: User) -> None:
        user.failed_otp_attempts = 0
        user.account_locked_until = None
