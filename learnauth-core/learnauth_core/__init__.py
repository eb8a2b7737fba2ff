"""
LearnAuth Core Library
======================
Authentication core for the learning platform: OTP two-factor flows,
per-operation rate limiting and progressive account lockout.
"""

__version__ = "0.3.0"

# Configuration
from learnauth_core.config import AuthConfig, OperationLimit

# Errors
from learnauth_core.errors import (
    AuthError,
    InvalidCredentials,
    RateLimited,
    AccountLocked,
    InvalidOtp,
    SessionExpired,
    PasswordMismatch,
    PasswordReuse,
    AlreadyRegistered,
    NotificationDeliveryError,
)

# KV Store
from learnauth_core.kv import KVStore, InMemoryKVStore, RedisKVStore

# OTP
from learnauth_core.otp import OtpPurpose, OtpIssuer, AttemptLedger

# Rate Limiting
from learnauth_core.rate_limit import RateLimiter, RateLimitInfo, RateScope

# Accounts
from learnauth_core.accounts import (
    User,
    UserRole,
    AccountState,
    LockoutPolicy,
    CredentialStore,
    InMemoryCredentialStore,
    SqlCredentialStore,
)

# Flow State
from learnauth_core.flow_state import FlowState, FlowStateStore

# Notifications
from learnauth_core.notifications import NotificationSink, MailRelaySink, LoggingSink

# Tokens
from learnauth_core.tokens import TokenIssuer

# Service
from learnauth_core.service import AuthService

# HTTP
from learnauth_core.api import create_auth_router, create_app

# Logging
from learnauth_core.log_config import configure_logging

__all__ = [
    # Configuration
    "AuthConfig",
    "OperationLimit",
    # Errors
    "AuthError",
    "InvalidCredentials",
    "RateLimited",
    "AccountLocked",
    "InvalidOtp",
    "SessionExpired",
    "PasswordMismatch",
    "PasswordReuse",
    "AlreadyRegistered",
    "NotificationDeliveryError",
    # KV Store
    "KVStore",
    "InMemoryKVStore",
    "RedisKVStore",
    # OTP
    "OtpPurpose",
    "OtpIssuer",
    "AttemptLedger",
    # Rate Limiting
    "RateLimiter",
    "RateLimitInfo",
    "RateScope",
    # Accounts
    "User",
    "UserRole",
    "AccountState",
    "LockoutPolicy",
    "CredentialStore",
    "InMemoryCredentialStore",
    "SqlCredentialStore",
    # Flow State
    "FlowState",
    "FlowStateStore",
    # Notifications
    "NotificationSink",
    "MailRelaySink",
    "LoggingSink",
    # Tokens
    "TokenIssuer",
    # Service
    "AuthService",
    # HTTP
    "create_auth_router",
    "create_app",
    # Logging
    "configure_logging",
]
