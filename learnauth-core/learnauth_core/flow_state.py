"""
Email Flow State
================
Per-email state machine gating multi-step flows without persistent writes.

    UNVERIFIED ──mark_pre_verified──▶ PRE_VERIFIED ──consume──▶ UNVERIFIED
    *          ──begin_reset────────▶ RESET_PENDING
    *          ──confirm_reset──────▶ RESET_VERIFIED ──consume──▶ UNVERIFIED

UNVERIFIED is the absence of a record. Every transition overwrites the
previous state and carries its own TTL; expiry drops back to UNVERIFIED.
"""

from enum import Enum
from typing import Optional

import structlog

from .config import AuthConfig
from .errors import SessionExpired
from .kv import KVStore, keys
from .masking import mask_email

logger = structlog.get_logger(__name__)


class FlowState(str, Enum):
    UNVERIFIED = "unverified"
    PRE_VERIFIED = "pre_verified"
    RESET_PENDING = "reset_pending"
    RESET_VERIFIED = "reset_verified"


class FlowStateStore:
    """Reads and transitions the flow state of an email."""

    def __init__(self, kv: KVStore, config: Optional[AuthConfig] = None):
        self.kv = kv
        self.config = config or AuthConfig()

    async def current(self, email: str) -> FlowState:
        data = await self.kv.get(keys.flow_key(email))
        if not data:
            return FlowState.UNVERIFIED
        return FlowState(data["state"])

    async def _transition(self, email: str, state: FlowState, ttl_seconds: int) -> None:
        await self.kv.set(keys.flow_key(email), {"state": state.value}, ttl_seconds)
        logger.debug("Flow state changed", identity=mask_email(email), state=state.value)

    async def mark_pre_verified(self, email: str) -> None:
        """Email proven before any user row exists."""
        await self._transition(
            email,
            FlowState.PRE_VERIFIED,
            self.config.pre_register_ttl_days * 86400,
        )

    async def consume_pre_verification(self, email: str) -> bool:
        """Single-use check for the registration step; clears the state when present."""
        if await self.current(email) is not FlowState.PRE_VERIFIED:
            return False
        await self.clear(email)
        return True

    async def begin_reset(self, email: str) -> None:
        await self._transition(
            email,
            FlowState.RESET_PENDING,
            self.config.password_reset_ttl_minutes * 60,
        )

    async def confirm_reset(self, email: str) -> None:
        await self._transition(
            email,
            FlowState.RESET_VERIFIED,
            self.config.password_reset_ttl_minutes * 60,
        )

    async def require_reset_verified(self, email: str) -> None:
        """
        Raises:
            SessionExpired: If the reset OTP has not been verified (or the window lapsed)
        """
        if await self.current(email) is not FlowState.RESET_VERIFIED:
            raise SessionExpired()

    async def clear(self, email: str) -> None:
        await self.kv.delete(keys.flow_key(email))
