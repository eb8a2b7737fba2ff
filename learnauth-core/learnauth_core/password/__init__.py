"""
Password Hashing
================
Argon2id hashing with transparent upgrade of legacy bcrypt hashes.
"""

from .hasher import get_cached_hasher, is_argon2_hash, is_bcrypt_hash
from .async_ops import hash_password, verify_password, verify_and_upgrade, needs_rehash

__all__ = [
    # Hasher
    "get_cached_hasher",
    "is_argon2_hash",
    "is_bcrypt_hash",
    # Async Operations
    "hash_password",
    "verify_password",
    "verify_and_upgrade",
    "needs_rehash",
]
