"""
Ephemeral KV Store
==================
TTL-scoped storage for OTPs, counters, rate windows and flow state.
"""

from .base import KVStore, BoundedIncrement
from .in_memory import InMemoryKVStore
from .redis_store import RedisKVStore, INCREMENT_SCRIPT, BOUNDED_INCREMENT_SCRIPT
from . import keys

__all__ = [
    # Contract
    "KVStore",
    "BoundedIncrement",
    # Backends
    "InMemoryKVStore",
    "RedisKVStore",
    # Scripts
    "INCREMENT_SCRIPT",
    "BOUNDED_INCREMENT_SCRIPT",
    # Key naming
    "keys",
]
