"""
Redis KV Store
==============
Redis-backed KV store using Lua scripts for atomic counters.
"""

import json
from typing import Any, Dict, Optional

import structlog
from redis.exceptions import NoScriptError

from .base import BoundedIncrement, KVStore

logger = structlog.get_logger(__name__)

# INCR and start the window on first use
INCREMENT_SCRIPT = """
local key = KEYS[1]
local ttl = tonumber(ARGV[1])

local count = redis.call('INCR', key)
if count == 1 or redis.call('TTL', key) < 0 then
    redis.call('EXPIRE', key, ttl)
end

return count
"""

# Compare against the ceiling and increment in one step
BOUNDED_INCREMENT_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])

local count = tonumber(redis.call('GET', key) or '0')
local ttl = redis.call('TTL', key)

if count >= limit then
    if ttl < 0 then
        ttl = window
        if count > 0 then
            redis.call('EXPIRE', key, window)
        end
    end
    return {0, count, ttl}
end

count = redis.call('INCR', key)
if count == 1 or ttl < 0 then
    redis.call('EXPIRE', key, window)
    ttl = window
end

return {1, count, ttl}
"""


class RedisKVStore(KVStore):
    """
    KV store over an async Redis client.

    Errors from Redis propagate to the caller: OTP and lockout integrity
    must not degrade silently.
    """

    def __init__(self, redis_client):
        """
        Args:
            redis_client: redis.asyncio client created with decode_responses=True
        """
        self.redis = redis_client
        self._script_shas: Dict[str, str] = {}

    @classmethod
    def from_url(cls, url: str) -> "RedisKVStore":
        import redis.asyncio as aioredis

        return cls(aioredis.from_url(url, decode_responses=True))

    async def _ensure_script(self, script: str) -> str:
        """Load Lua script into Redis if needed."""
        sha = self._script_shas.get(script)
        if sha is None:
            sha = await self.redis.script_load(script)
            self._script_shas[script] = sha
        return sha

    async def _run_script(self, script: str, key: str, *args):
        sha = await self._ensure_script(script)
        try:
            return await self.redis.evalsha(sha, 1, key, *args)
        except NoScriptError:
            # Script cache flushed (restart/failover); load again and retry once
            logger.info("Reloading Lua script", key=key)
            self._script_shas.pop(script, None)
            sha = await self._ensure_script(script)
            return await self.redis.evalsha(sha, 1, key, *args)

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if value is None or ttl_seconds == 0:
            await self.delete(key)
            return
        payload = json.dumps(value)
        if ttl_seconds is None:
            await self.redis.set(key, payload)
        else:
            await self.redis.set(key, payload, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)

    async def pop(self, key: str) -> Optional[Any]:
        raw = await self.redis.getdel(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def increment_counter(self, key: str, ttl_seconds: int) -> int:
        count = await self._run_script(INCREMENT_SCRIPT, key, ttl_seconds)
        return int(count)

    async def increment_if_below(self, key: str, limit: int, ttl_seconds: int) -> BoundedIncrement:
        allowed, count, ttl = await self._run_script(
            BOUNDED_INCREMENT_SCRIPT, key, limit, ttl_seconds
        )
        return BoundedIncrement(
            allowed=bool(allowed),
            count=int(count),
            ttl_seconds=int(ttl),
        )

    async def ttl(self, key: str) -> Optional[int]:
        remaining = await self.redis.ttl(key)
        if remaining is None or remaining < 0:
            return None
        return int(remaining)

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    async def close(self) -> None:
        await self.redis.aclose()
