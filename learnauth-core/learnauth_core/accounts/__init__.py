"""
Accounts
========
User records, the lockout state machine and credential stores.
"""

from .models import User, UserRole
from .lockout import AccountState, LockoutPolicy
from .store import CredentialStore, InMemoryCredentialStore
from .sql import SqlCredentialStore, UserRow

__all__ = [
    # Models
    "User",
    "UserRole",
    # Lockout
    "AccountState",
    "LockoutPolicy",
    # Stores
    "CredentialStore",
    "InMemoryCredentialStore",
    "SqlCredentialStore",
    "UserRow",
]
