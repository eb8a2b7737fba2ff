"""
KV Store Contract
=================
Ephemeral key-value store with per-key TTL and atomic counters.

Every OTP, attempt, resend, rate-window and flow record lives behind this
interface. Counter mutations must be single atomic round trips.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class BoundedIncrement:
    """Outcome of an atomic increment-if-below-limit."""
    allowed: bool
    count: int
    ttl_seconds: int


class KVStore(ABC):
    """Async key-value store with TTL expiry."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """
        Store a JSON-serialisable value.

        A value of None or a ttl of 0 deletes the key.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key if present."""

    @abstractmethod
    async def pop(self, key: str) -> Optional[Any]:
        """
        Atomically read and remove a key.

        Of several concurrent callers at most one receives the value.
        """

    @abstractmethod
    async def increment_counter(self, key: str, ttl_seconds: int) -> int:
        """
        Atomically increment a counter and return the new count.

        The TTL is applied when the counter is created, so a window is
        fixed from its first increment.
        """

    @abstractmethod
    async def increment_if_below(self, key: str, limit: int, ttl_seconds: int) -> BoundedIncrement:
        """
        Atomically increment a counter unless it already reached ``limit``.

        A rejected call leaves the counter untouched.
        """

    @abstractmethod
    async def ttl(self, key: str) -> Optional[int]:
        """Seconds until the key expires, or None when absent or persistent."""
