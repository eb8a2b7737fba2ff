"""
Async Password Operations
=========================
Hashing and verification run in the default executor so the event loop
never blocks on a KDF.

New hashes are Argon2id. Accounts created before the migration still carry
bcrypt hashes; those verify normally and are upgraded on the next login.
"""

import asyncio
from typing import Optional, Tuple

import bcrypt
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from .hasher import get_cached_hasher, is_argon2_hash, is_bcrypt_hash


async def hash_password(password: str) -> str:
    """
    Produce a fresh Argon2id hash for a new or reset password.

    Raises:
        ValueError: If the password is empty
    """
    if not password:
        raise ValueError("refusing to hash an empty password")

    hasher = get_cached_hasher()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, hasher.hash, password)


def _verify_argon2(password: str, hash: str) -> bool:
    try:
        return get_cached_hasher().verify(hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def _verify_bcrypt(password: str, hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hash.encode("utf-8"))
    except ValueError:
        # Malformed salt in a legacy row
        return False


async def verify_password(password: str, hash: Optional[str]) -> bool:
    """
    Check a submitted password against the stored Argon2id or bcrypt hash.

    Returns False for empty input or an unrecognised hash format.
    """
    if not password or not hash:
        return False

    loop = asyncio.get_running_loop()
    if is_argon2_hash(hash):
        return await loop.run_in_executor(None, _verify_argon2, password, hash)
    if is_bcrypt_hash(hash):
        return await loop.run_in_executor(None, _verify_bcrypt, password, hash)
    return False


def needs_rehash(hash: str) -> bool:
    """True for bcrypt hashes and Argon2 hashes with outdated parameters."""
    if is_bcrypt_hash(hash):
        return True
    if is_argon2_hash(hash):
        try:
            return get_cached_hasher().check_needs_rehash(hash)
        except InvalidHashError:
            return True
    return True


async def verify_and_upgrade(password: str, hash: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Verify and, when the stored hash is legacy or stale, rehash.

    Returns:
        ``(matched, replacement_hash)``; the second item is None unless the
        stored hash should be swapped out.
    """
    if not await verify_password(password, hash):
        return False, None

    if needs_rehash(hash):
        return True, await hash_password(password)

    return True, None
