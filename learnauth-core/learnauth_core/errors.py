"""
Auth Errors
===========
Typed policy failures raised at the AuthService boundary.

Each error carries the HTTP status the API layer responds with, a stable
machine-readable code, and optional details merged into the JSON body.
"""

from typing import Any, Dict, Optional


class AuthError(Exception):
    """Base exception for all authentication policy failures."""

    status_code: int = 400
    code: str = "AUTH_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.details}


class InvalidCredentials(AuthError):
    """Email/password (or email/code) pair was not accepted (401)."""
    status_code = 401
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class RateLimited(AuthError):
    """A rate window is exhausted (429)."""
    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, message: str, remaining: int = 0, reset_time: Optional[int] = None):
        self.remaining = remaining
        self.reset_time = reset_time
        super().__init__(
            message,
            details={"remaining": remaining, "resetTime": reset_time},
        )


class AccountLocked(AuthError):
    """OTP verification is suspended for the identity (400)."""
    status_code = 400
    code = "ACCOUNT_LOCKED"

    def __init__(self, minutes_remaining: int, message: Optional[str] = None):
        self.minutes_remaining = minutes_remaining
        super().__init__(
            message or (
                f"Account is temporarily locked. "
                f"Try again in {minutes_remaining} minute(s)."
            ),
            details={"minutesRemaining": minutes_remaining},
        )


class InvalidOtp(AuthError):
    """Submitted code did not match (400)."""
    status_code = 400
    code = "INVALID_OTP"

    def __init__(self, remaining_attempts: int, message: Optional[str] = None):
        self.remaining_attempts = remaining_attempts
        super().__init__(
            message or f"Invalid OTP. {remaining_attempts} attempt(s) remaining.",
            details={"remainingAttempts": remaining_attempts},
        )


class SessionExpired(AuthError):
    """Password reset attempted without a verified reset session (401)."""
    status_code = 401
    code = "SESSION_EXPIRED"

    def __init__(self, message: str = "Password reset session expired. Please request a new code."):
        super().__init__(message)


class PasswordMismatch(AuthError):
    status_code = 400
    code = "PASSWORD_MISMATCH"

    def __init__(self, message: str = "Password and confirm password must match"):
        super().__init__(message)


class PasswordReuse(AuthError):
    status_code = 400
    code = "PASSWORD_REUSE"

    def __init__(self, message: str = "New password must be different from the current password"):
        super().__init__(message)


class AlreadyRegistered(AuthError):
    """Registration OTP requested for an email that already owns an account (409)."""
    status_code = 409
    code = "ALREADY_REGISTERED"

    def __init__(self, message: str = "This email is already registered and verified."):
        super().__init__(message)


class NotificationDeliveryError(AuthError):
    """The notification sink failed to deliver a code (502)."""
    status_code = 502
    code = "DELIVERY_FAILED"

    def __init__(self, message: str = "Failed to deliver verification code", cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)
