"""
Shared fixtures for learnauth-core tests.
"""

import bcrypt
import pytest

from learnauth_core.accounts import InMemoryCredentialStore, User
from learnauth_core.config import AuthConfig
from learnauth_core.kv import InMemoryKVStore
from learnauth_core.notifications import LoggingSink
from learnauth_core.service import AuthService
from learnauth_core.tokens import TokenIssuer

PASSWORD = "Str0ng!Pass"
START = 1_700_000_000.0


class FakeClock:
    """Manually advanced Unix clock."""

    def __init__(self, start: float = START):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def bcrypt_hash(password: str) -> str:
    # Low cost keeps the suite fast
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4)).decode()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return AuthConfig(token_secret="test-secret")


@pytest.fixture
def kv(clock):
    return InMemoryKVStore(clock=clock)


@pytest.fixture
def sink():
    return LoggingSink()


@pytest.fixture
def users():
    return InMemoryCredentialStore([
        User(id=1, email="alice@example.com", password_hash=bcrypt_hash(PASSWORD), name="Alice"),
        User(id=2, email="nopass@example.com", password_hash=None, name="No Password"),
    ])


@pytest.fixture
def service(kv, users, sink, config, clock):
    tokens = TokenIssuer(config.token_secret, config.token_ttl_hours, clock=clock)
    return AuthService(kv, users, sink, tokens, config, clock=clock)
