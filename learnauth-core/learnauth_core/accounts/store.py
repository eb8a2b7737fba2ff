"""
Credential Store
================
Persistent user lookup and the partial update the auth flows need.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from ..kv.keys import normalize_identity
from .models import User


class CredentialStore(ABC):
    """Access to persistent user records."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """Return the live user owning ``email``, or None."""

    @abstractmethod
    async def save(self, user: User) -> None:
        """
        Persist password_hash, failed_otp_attempts and account_locked_until.

        Other columns belong to the CRUD layer and are left untouched.
        """

    @abstractmethod
    async def record_otp_failure(self, user: User) -> None:
        """
        Merge a failed verification into the stored row.

        The stored attempt count only grows and an existing lock is never
        cleared, so a late write from a concurrent failure cannot undo a
        lock set by another.
        """


class InMemoryCredentialStore(CredentialStore):
    """
    Dict-backed credential store.

    For development and testing only. Returns copies so that unsaved
    mutations never leak into the store.
    """

    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[str, User] = {}
        self.save_count = 0
        for user in users:
            self.add(user)

    def add(self, user: User) -> User:
        self._users[normalize_identity(user.email)] = copy.deepcopy(user)
        return user

    def get(self, email: str) -> Optional[User]:
        """Direct read of the stored record (test helper)."""
        user = self._users.get(normalize_identity(email))
        return copy.deepcopy(user) if user else None

    async def find_by_email(self, email: str) -> Optional[User]:
        return self.get(email)

    async def save(self, user: User) -> None:
        stored = self._users.get(normalize_identity(user.email))
        if stored is None:
            raise LookupError(f"No user with id {user.id}")
        stored.password_hash = user.password_hash
        stored.failed_otp_attempts = user.failed_otp_attempts
        stored.account_locked_until = user.account_locked_until
        self.save_count += 1

    async def record_otp_failure(self, user: User) -> None:
        stored = self._users.get(normalize_identity(user.email))
        if stored is None:
            raise LookupError(f"No user with id {user.id}")
        stored.failed_otp_attempts = max(stored.failed_otp_attempts or 0, user.failed_otp_attempts)
        if user.account_locked_until is not None and (
            stored.account_locked_until is None or stored.account_locked_until < user.account_locked_until
        ):
            stored.account_locked_until = user.account_locked_until
        self.save_count += 1
