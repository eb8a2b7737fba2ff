"""
Auth Configuration
==================
Tunables for OTP issuance, lockout, rate limiting and token signing.
"""

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class OperationLimit:
    """Request ceiling for one rate-limit scope."""
    limit: int
    window_seconds: int


@dataclass
class AuthConfig:
    """Configuration for the authentication core."""
    otp_length: int = 6
    otp_expiry_minutes: int = 5
    max_otp_attempts: int = 5
    max_resend_attempts: int = 3
    resend_window_seconds: int = 3600
    lockout_minutes: int = 30

    rate_limit_register_per_hour: int = 3
    rate_limit_login_per_15min: int = 5
    rate_limit_ip_per_hour: int = 20

    pre_register_ttl_days: int = 30
    password_reset_ttl_minutes: int = 30

    token_secret: str = ""
    token_ttl_hours: int = 24

    mail_relay_url: str = "http://localhost:8025"
    mail_relay_secret: str = ""
    mail_relay_timeout: float = 10.0

    redis_url: str = "redis://localhost:6379/0"
    database_url: str = "postgresql+asyncpg://localhost/learnauth"

    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AuthConfig":
        """
        Build a config from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Raises:
            ValueError: If an integer setting cannot be parsed
        """
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            otp_length=_env_int(env, "OTP_LENGTH", defaults.otp_length),
            otp_expiry_minutes=_env_int(env, "OTP_EXPIRY_MINUTES", defaults.otp_expiry_minutes),
            max_otp_attempts=_env_int(env, "MAX_OTP_ATTEMPTS", defaults.max_otp_attempts),
            max_resend_attempts=_env_int(env, "MAX_RESEND_ATTEMPTS", defaults.max_resend_attempts),
            resend_window_seconds=_env_int(env, "RESEND_WINDOW_SECONDS", defaults.resend_window_seconds),
            lockout_minutes=_env_int(env, "LOCKOUT_MINUTES", defaults.lockout_minutes),
            rate_limit_register_per_hour=_env_int(
                env, "RATE_LIMIT_REGISTER_PER_HOUR", defaults.rate_limit_register_per_hour
            ),
            rate_limit_login_per_15min=_env_int(
                env, "RATE_LIMIT_LOGIN_PER_15MIN", defaults.rate_limit_login_per_15min
            ),
            rate_limit_ip_per_hour=_env_int(env, "RATE_LIMIT_IP_PER_HOUR", defaults.rate_limit_ip_per_hour),
            pre_register_ttl_days=_env_int(env, "PRE_REGISTER_TTL_DAYS", defaults.pre_register_ttl_days),
            password_reset_ttl_minutes=_env_int(
                env, "PASSWORD_RESET_TTL_MINUTES", defaults.password_reset_ttl_minutes
            ),
            token_secret=env.get("TOKEN_SECRET", defaults.token_secret),
            token_ttl_hours=_env_int(env, "TOKEN_TTL_HOURS", defaults.token_ttl_hours),
            mail_relay_url=env.get("MAIL_RELAY_URL", defaults.mail_relay_url),
            mail_relay_secret=env.get("MAIL_RELAY_SECRET", defaults.mail_relay_secret),
            redis_url=env.get("REDIS_URL", defaults.redis_url),
            database_url=env.get("DATABASE_URL", defaults.database_url),
            log_level=env.get("LOG_LEVEL", defaults.log_level),
            log_json=_env_bool(env, "LOG_JSON", defaults.log_json),
        )

    @property
    def otp_expiry_seconds(self) -> int:
        return self.otp_expiry_minutes * 60

    @property
    def operation_limits(self) -> Dict[str, OperationLimit]:
        """Per-scope request ceilings, keyed by rate-limit scope value."""
        return {
            "register": OperationLimit(self.rate_limit_register_per_hour, 3600),
            "login": OperationLimit(self.rate_limit_login_per_15min, 900),
            "resend": OperationLimit(self.max_resend_attempts, 3600),
            "verify": OperationLimit(self.max_otp_attempts, self.otp_expiry_seconds),
            "ip": OperationLimit(self.rate_limit_ip_per_hour, 3600),
        }
