"""
Auth Service
============
Orchestrates the authentication flows on top of the OTP issuer, attempt
ledger, rate limiter, lockout policy and flow state store.

Flows:
    direct_login / initiate_login_otp / verify_login_otp
    send_registration_otp / verify_email / resend_verification_otp
    forgot_password / verify_forgot_password_otp / reset_password

Every policy failure is raised as an AuthError subclass. KV and database
exceptions propagate unchanged.

Usage:
    service = AuthService.create(config, kv, credentials)
    result = await service.initiate_login_otp(email, password, ip)
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import structlog

from .accounts import AccountState, CredentialStore, LockoutPolicy, User
from .config import AuthConfig
from .errors import (
    AccountLocked,
    AlreadyRegistered,
    InvalidCredentials,
    InvalidOtp,
    PasswordMismatch,
    PasswordReuse,
    RateLimited,
    SessionExpired,
)
from .flow_state import FlowStateStore
from .kv import KVStore, keys
from .masking import mask_email, mask_ip
from .metrics import record_lockout, record_otp_issued, record_rate_limited, record_verification
from .notifications import MailRelaySink, NotificationSink
from .otp import AttemptLedger, OtpIssuer, OtpPurpose
from .password import hash_password, verify_and_upgrade, verify_password
from .rate_limit import RateLimiter, RateScope
from .tokens import TokenIssuer

logger = structlog.get_logger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset code has been sent."


class AuthService:
    """Authentication orchestrator for one deployment."""

    def __init__(
        self,
        kv: KVStore,
        credentials: CredentialStore,
        notifier: NotificationSink,
        tokens: TokenIssuer,
        config: Optional[AuthConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or AuthConfig()
        self.kv = kv
        self.credentials = credentials
        self.notifier = notifier
        self.tokens = tokens
        self.clock = clock

        self.otps = OtpIssuer(kv, self.config)
        self.ledger = AttemptLedger(kv, self.config)
        self.limiter = RateLimiter(kv, self.config, clock)
        self.flows = FlowStateStore(kv, self.config)
        self.lockout = LockoutPolicy(self.config.max_otp_attempts, self.config.lockout_minutes)

    @classmethod
    def create(
        cls,
        config: AuthConfig,
        kv: KVStore,
        credentials: CredentialStore,
        notifier: Optional[NotificationSink] = None,
    ) -> "AuthService":
        """Wire a service from configuration, defaulting to the HTTP mail relay."""
        if notifier is None:
            notifier = MailRelaySink(
                config.mail_relay_url,
                secret=config.mail_relay_secret,
                timeout=config.mail_relay_timeout,
            )
        tokens = TokenIssuer(config.token_secret, config.token_ttl_hours)
        return cls(kv, credentials, notifier, tokens, config)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    # =========================================================================
    # Shared steps
    # =========================================================================

    async def _enforce_ip_limit(self, ip: str) -> None:
        info = await self.limiter.check_ip_limit(ip)
        if not info.allowed:
            logger.warning("IP rate limit exceeded", ip=mask_ip(ip))
            raise RateLimited(
                "Too many requests from this IP address. Please try again later.",
                remaining=0,
                reset_time=info.reset_at,
            )

    async def _enforce_operation_limit(self, scope: RateScope, identifier: str, message: str) -> int:
        info = await self.limiter.check_operation_limit(scope, identifier)
        if not info.allowed:
            raise RateLimited(message, remaining=0, reset_time=info.reset_at)
        return info.remaining

    async def _deliver(self, email: str, code: str, purpose: OtpPurpose) -> None:
        await self.notifier.deliver(email, code, purpose, self.config.otp_expiry_minutes)
        record_otp_issued(purpose.value)

    def _session(self, user: User) -> Dict[str, Any]:
        return {
            "access_token": self.tokens.issue_for_user(user),
            "user": user.summary(),
        }

    async def _check_credentials(self, email: str, password: str) -> User:
        user = await self.credentials.find_by_email(email)
        if user is None or not user.has_password:
            raise InvalidCredentials()
        if not await verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return user

    async def _verify_user_otp(self, user: User, email: str, otp: str, purpose: OtpPurpose) -> None:
        """
        Validate ``otp`` for an existing user under the lockout policy.

        A locked account is rejected before the OTP store is read. A failure
        that reaches the threshold locks the account and discards the code.

        Raises:
            AccountLocked: If the account is, or just became, locked
            InvalidOtp: If the code is wrong and attempts remain
        """
        now = self._now()
        if self.lockout.is_locked(user, now):
            record_verification(purpose.value, "locked")
            raise AccountLocked(self.lockout.minutes_remaining(user, now))

        if await self.otps.consume(email, otp, purpose):
            await self.ledger.reset_all_attempts(email)
            if user.failed_otp_attempts or user.account_locked_until is not None:
                self.lockout.reset(user)
                await self.credentials.save(user)
            record_verification(purpose.value, "success")
            logger.info("OTP verified", identity=mask_email(email), purpose=purpose.value)
            return

        attempts = await self.ledger.track_attempt(email, purpose)
        state = self.lockout.record_failure(user, now, observed_attempts=attempts)
        await self.credentials.record_otp_failure(user)

        if state is AccountState.LOCKED:
            await self.otps.delete(email, purpose)
            record_lockout(purpose.value)
            record_verification(purpose.value, "locked")
            logger.warning(
                "Account locked after failed OTP attempts",
                identity=mask_email(email),
                purpose=purpose.value,
                attempts=user.failed_otp_attempts,
                lockout_minutes=self.lockout.lockout_minutes,
            )
            raise AccountLocked(
                self.lockout.lockout_minutes,
                message=(
                    "Too many failed attempts. Your account has been locked "
                    f"for {self.lockout.lockout_minutes} minutes."
                ),
            )

        record_verification(purpose.value, "invalid")
        raise InvalidOtp(self.lockout.remaining_attempts(user))

    async def _unknown_identity_error(self, email: str, purpose: OtpPurpose) -> InvalidOtp:
        """Build the error for an unknown email, counted the way a wrong code is."""
        count = await self.ledger.track_attempt(email, purpose)
        record_verification(purpose.value, "invalid")
        logger.info("OTP verification for unknown identity", identity=mask_email(email), purpose=purpose.value)
        return InvalidOtp(max(0, self.config.max_otp_attempts - count))

    # =========================================================================
    # Login
    # =========================================================================

    async def login(self, email: str, password: str, ip: str, use_otp: bool = False) -> Dict[str, Any]:
        """Unified entry point: OTP two-factor when ``use_otp`` is set, direct otherwise."""
        if use_otp:
            return await self.initiate_login_otp(email, password, ip)
        return await self.direct_login(email, password)

    async def direct_login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Password-only login.

        Legacy bcrypt hashes are re-hashed with Argon2id on success.

        Raises:
            InvalidCredentials: Unknown email or wrong password
        """
        user = await self.credentials.find_by_email(email)
        if user is None or not user.has_password:
            raise InvalidCredentials()

        valid, new_hash = await verify_and_upgrade(password, user.password_hash)
        if not valid:
            raise InvalidCredentials()

        if new_hash:
            user.password_hash = new_hash
            await self.credentials.save(user)
            logger.info("Password hash upgraded", user_id=user.id)

        logger.info("User logged in", user_id=user.id, method="password")
        return self._session(user)

    async def initiate_login_otp(self, email: str, password: str, ip: str) -> Dict[str, Any]:
        """
        First step of two-factor login: check the password, then email a code.

        Raises:
            RateLimited: IP or per-email login window exhausted
            InvalidCredentials: Unknown email or wrong password
            NotificationDeliveryError: The code could not be sent
        """
        await self._enforce_ip_limit(ip)
        user = await self._check_credentials(email, password)
        remaining = await self._enforce_operation_limit(
            RateScope.LOGIN,
            email,
            "Too many login attempts. Please try again later.",
        )

        code = await self.otps.issue(email, OtpPurpose.LOGIN)
        await self.ledger.reset_attempts(email, OtpPurpose.LOGIN)
        await self._deliver(email, code, OtpPurpose.LOGIN)

        logger.info("Login OTP sent", identity=mask_email(email))
        return {
            "message": "OTP sent to your email. Please verify to complete login.",
            "email": user.email,
            "remainingAttempts": remaining,
        }

    async def verify_login_otp(self, email: str, otp: str, ip: str) -> Dict[str, Any]:
        """
        Second step of two-factor login.

        Raises:
            RateLimited: IP window exhausted
            AccountLocked: Account locked, or locked by this failure
            InvalidOtp: Wrong code (also returned for unknown emails)
        """
        await self._enforce_ip_limit(ip)
        user = await self.credentials.find_by_email(email)
        if user is None:
            raise await self._unknown_identity_error(email, OtpPurpose.LOGIN)

        await self._verify_user_otp(user, email, otp, OtpPurpose.LOGIN)

        logger.info("User logged in", user_id=user.id, method="otp")
        return self._session(user)

    # =========================================================================
    # Email verification
    # =========================================================================

    async def send_registration_otp(self, email: str, ip: str) -> Dict[str, Any]:
        """
        Email a verification code ahead of registration.

        Raises:
            RateLimited: IP or per-email register window exhausted
            AlreadyRegistered: The email already belongs to a registered account
        """
        await self._enforce_ip_limit(ip)
        await self._enforce_operation_limit(
            RateScope.REGISTER,
            email,
            "Too many registration attempts. Please try again later.",
        )

        user = await self.credentials.find_by_email(email)
        if user is not None and user.has_password:
            raise AlreadyRegistered()

        code = await self.otps.issue(email, OtpPurpose.REGISTER)
        await self.ledger.reset_attempts(email, OtpPurpose.REGISTER)
        await self._deliver(email, code, OtpPurpose.REGISTER)

        return {
            "message": "Verification code sent to your email.",
            "email": email,
            "expiresInMinutes": self.config.otp_expiry_minutes,
        }

    async def verify_email(self, email: str, otp: str, ip: str) -> Dict[str, Any]:
        """
        Verify a registration code.

        With a user row the lockout machinery applies. Without one the
        email is marked pre-verified for the registration step.
        """
        await self._enforce_ip_limit(ip)
        user = await self.credentials.find_by_email(email)

        if user is not None:
            await self._verify_user_otp(user, email, otp, OtpPurpose.REGISTER)
            return {"message": "Email verified successfully.", "email": email, "verified": True}

        purpose = OtpPurpose.REGISTER
        if not await self.otps.consume(email, otp, purpose):
            count = await self.ledger.track_attempt(email, purpose)
            remaining = max(0, self.config.max_otp_attempts - count)
            record_verification(purpose.value, "invalid")
            if remaining == 0:
                await self.otps.delete(email, purpose)
                logger.warning("Pre-registration OTP exhausted", identity=mask_email(email))
                raise InvalidOtp(0, message="Too many failed attempts. Please request a new code.")
            raise InvalidOtp(remaining)

        await self.ledger.reset_attempts(email, purpose)
        await self.flows.mark_pre_verified(email)
        record_verification(purpose.value, "success")

        logger.info("Email pre-verified", identity=mask_email(email))
        return {"message": "Email verified successfully.", "email": email, "verified": True}

    async def resend_verification_otp(self, email: str, ip: str) -> Dict[str, Any]:
        """
        Issue a fresh registration code, forgiving earlier failed attempts.

        Raises:
            RateLimited: IP window or the hourly resend allowance exhausted
            AccountLocked: The account is currently locked
        """
        await self._enforce_ip_limit(ip)
        user = await self.credentials.find_by_email(email)

        now = self._now()
        if user is not None and self.lockout.is_locked(user, now):
            raise AccountLocked(self.lockout.minutes_remaining(user, now))

        if not await self.ledger.can_resend(email):
            record_rate_limited(RateScope.RESEND.value)
            ttl = await self.kv.ttl(keys.resend_key(email))
            logger.warning("Resend allowance exhausted", identity=mask_email(email))
            raise RateLimited(
                "Too many resend requests. Please try again later.",
                remaining=0,
                reset_time=int(self.clock()) + (ttl or 0),
            )

        if user is not None and (user.failed_otp_attempts or user.account_locked_until is not None):
            self.lockout.reset(user)
            await self.credentials.save(user)
        await self.ledger.reset_all_attempts(email)

        code = await self.otps.issue(email, OtpPurpose.REGISTER)
        await self.ledger.track_resend(email)
        await self._deliver(email, code, OtpPurpose.REGISTER)

        logger.info("Verification OTP resent", identity=mask_email(email))
        return {"message": "Verification code resent successfully.", "email": email}

    async def consume_registration_verification(self, email: str) -> bool:
        """True once per successful pre-registration verification."""
        return await self.flows.consume_pre_verification(email)

    # =========================================================================
    # Password reset
    # =========================================================================

    async def forgot_password(self, email: str, ip: str) -> Dict[str, Any]:
        """
        Start a password reset.

        The response is the same whether or not the email can reset; only
        an existing, unlocked account with a password receives a code.
        """
        await self._enforce_ip_limit(ip)
        user = await self.credentials.find_by_email(email)

        if user is None or not user.has_password or self.lockout.is_locked(user, self._now()):
            logger.info("Password reset not started", identity=mask_email(email))
            return {"message": FORGOT_PASSWORD_MESSAGE}

        await self.flows.begin_reset(email)
        code = await self.otps.issue(email, OtpPurpose.PASSWORD_RESET)
        await self.ledger.reset_attempts(email, OtpPurpose.PASSWORD_RESET)
        await self._deliver(email, code, OtpPurpose.PASSWORD_RESET)

        logger.info("Password reset OTP sent", identity=mask_email(email))
        return {"message": FORGOT_PASSWORD_MESSAGE}

    async def verify_forgot_password_otp(self, email: str, otp: str, ip: str) -> Dict[str, Any]:
        """
        Verify a password reset code and open the reset window.

        Raises:
            RateLimited: IP window exhausted
            AccountLocked: Account locked, or locked by this failure
            InvalidOtp: Wrong code (also returned for unknown emails)
        """
        await self._enforce_ip_limit(ip)
        user = await self.credentials.find_by_email(email)
        if user is None:
            raise await self._unknown_identity_error(email, OtpPurpose.PASSWORD_RESET)

        await self._verify_user_otp(user, email, otp, OtpPurpose.PASSWORD_RESET)
        await self.flows.confirm_reset(email)

        return {
            "message": "OTP verified successfully. You can now reset your password.",
            "email": email,
        }

    async def reset_password(self, email: str, new_password: str, confirm_password: str) -> Dict[str, Any]:
        """
        Set a new password inside a verified reset window.

        Raises:
            SessionExpired: No verified reset for this email
            PasswordMismatch: The two passwords differ
            PasswordReuse: The new password equals the current one
        """
        await self.flows.require_reset_verified(email)

        if new_password != confirm_password:
            raise PasswordMismatch()

        user = await self.credentials.find_by_email(email)
        if user is None:
            await self.flows.clear(email)
            raise SessionExpired()

        if await verify_password(new_password, user.password_hash):
            raise PasswordReuse()

        user.password_hash = await hash_password(new_password)
        self.lockout.reset(user)
        await self.credentials.save(user)

        await self.flows.clear(email)
        await self.ledger.reset_all_attempts(email)

        logger.info("Password reset completed", user_id=user.id)
        return {"message": "Password reset successfully."}
