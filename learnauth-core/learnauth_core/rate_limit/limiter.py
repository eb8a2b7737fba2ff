"""
Fixed-Window Rate Limiter
=========================
Per-(scope, identifier) request ceilings on top of the KV store's atomic
bounded increment.
"""

import time
from typing import Callable, Optional

import structlog

from ..config import AuthConfig
from ..kv import KVStore, keys
from ..metrics import record_rate_limited
from .models import RateLimitInfo, RateScope

logger = structlog.get_logger(__name__)


class RateLimiter:
    """
    Fixed-window limiter.

    The compare and the increment happen in one KV round trip, so
    concurrent requests can never push a window past its ceiling.
    Counters only ever grow; a window resets when its key expires.
    """

    def __init__(
        self,
        kv: KVStore,
        config: Optional[AuthConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.kv = kv
        self.config = config or AuthConfig()
        self.clock = clock

    async def check_limit(self, key: str, limit: int, window_seconds: int) -> RateLimitInfo:
        """
        Count a request against ``key``.

        Args:
            key: Window identifier (e.g. "login:user@example.com")
            limit: Maximum requests per window
            window_seconds: Window length

        Returns:
            RateLimitInfo with decision and quota
        """
        result = await self.kv.increment_if_below(keys.rate_key(key), limit, window_seconds)
        reset_at = int(self.clock()) + result.ttl_seconds

        if not result.allowed:
            return RateLimitInfo(
                allowed=False,
                remaining=0,
                limit=limit,
                reset_at=reset_at,
                retry_after=result.ttl_seconds,
            )

        return RateLimitInfo(
            allowed=True,
            remaining=max(0, limit - result.count),
            limit=limit,
            reset_at=reset_at,
        )

    async def check_operation_limit(self, operation: RateScope, identifier: str) -> RateLimitInfo:
        """Check the configured ceiling for an operation (register, login, resend, verify)."""
        operation = RateScope(operation)
        config = self.config.operation_limits[operation.value]
        info = await self.check_limit(
            keys.scoped_rate_key(operation.value, identifier),
            config.limit,
            config.window_seconds,
        )
        if not info.allowed:
            record_rate_limited(operation.value)
            logger.warning(
                "Rate limit exceeded",
                scope=operation.value,
                retry_after=info.retry_after,
            )
        return info

    async def check_ip_limit(self, ip: str) -> RateLimitInfo:
        """Check the per-IP hourly ceiling."""
        return await self.check_operation_limit(RateScope.IP, ip or "unknown")

    async def remaining_for(self, operation: RateScope, identifier: str) -> int:
        """Quota left in the current window without consuming any."""
        operation = RateScope(operation)
        limit = self.config.operation_limits[operation.value].limit
        current = await self.kv.get(
            keys.rate_key(keys.scoped_rate_key(operation.value, identifier))
        )
        return max(0, limit - int(current or 0))

    async def reset_limit(self, operation: RateScope, identifier: str) -> None:
        """Drop a window (administrative use)."""
        operation = RateScope(operation)
        await self.kv.delete(keys.rate_key(keys.scoped_rate_key(operation.value, identifier)))
