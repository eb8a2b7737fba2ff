"""
Password Hasher
===============
Argon2id hasher configuration.
"""

from functools import lru_cache

from argon2 import PasswordHasher, Type

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
ARGON2_PREFIX = "$argon2"


@lru_cache(maxsize=1)
def get_cached_hasher() -> PasswordHasher:
    """Argon2id hasher with production settings (~300ms per hash on a typical server)."""
    return PasswordHasher(
        time_cost=3,
        memory_cost=65536,  # 64MB
        parallelism=4,
        hash_len=32,
        salt_len=16,
        type=Type.ID,
    )


def is_bcrypt_hash(hash: str) -> bool:
    return bool(hash) and hash.startswith(BCRYPT_PREFIXES)


def is_argon2_hash(hash: str) -> bool:
    return bool(hash) and hash.startswith(ARGON2_PREFIX)
