"""
In-Memory KV Store
==================
Dict-backed KV store with lazy TTL expiry and an injectable clock.

For development and testing only.
Use RedisKVStore in production.
"""

import asyncio
import json
import math
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .base import BoundedIncrement, KVStore


class InMemoryKVStore(KVStore):
    """
    Single-process KV store.

    Values are round-tripped through JSON so that anything stored here
    would also survive the Redis backend.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: Returns the current Unix time in seconds
        """
        self.clock = clock
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = asyncio.Lock()

    def _live(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= self.clock():
            del self._entries[key]
            return None
        return entry

    def _expiry(self, ttl_seconds: Optional[int]) -> Optional[float]:
        if ttl_seconds is None:
            return None
        return self.clock() + ttl_seconds

    async def get(self, key: str) -> Optional[Any]:
        entry = self._live(key)
        if entry is None:
            return None
        return json.loads(entry[0])

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if value is None or ttl_seconds == 0:
            await self.delete(key)
            return
        async with self._lock:
            self._entries[key] = (json.dumps(value), self._expiry(ttl_seconds))

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def pop(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            del self._entries[key]
            return json.loads(entry[0])

    async def increment_counter(self, key: str, ttl_seconds: int) -> int:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                count, expires_at = 1, self._expiry(ttl_seconds)
            else:
                count, expires_at = int(json.loads(entry[0])) + 1, entry[1]
            self._entries[key] = (json.dumps(count), expires_at)
            return count

    async def increment_if_below(self, key: str, limit: int, ttl_seconds: int) -> BoundedIncrement:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                count, expires_at = 0, self._expiry(ttl_seconds)
            else:
                count, expires_at = int(json.loads(entry[0])), entry[1]

            if count >= limit:
                return BoundedIncrement(
                    allowed=False,
                    count=count,
                    ttl_seconds=self._remaining(expires_at, ttl_seconds),
                )

            count += 1
            self._entries[key] = (json.dumps(count), expires_at)
            return BoundedIncrement(
                allowed=True,
                count=count,
                ttl_seconds=self._remaining(expires_at, ttl_seconds),
            )

    async def ttl(self, key: str) -> Optional[int]:
        entry = self._live(key)
        if entry is None or entry[1] is None:
            return None
        return self._remaining(entry[1], 0)

    def _remaining(self, expires_at: Optional[float], default: int) -> int:
        if expires_at is None:
            return default
        return max(0, math.ceil(expires_at - self.clock()))

    def clear(self) -> None:
        """Drop every key (test helper)."""
        self._entries.clear()
