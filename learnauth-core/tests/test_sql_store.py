"""
Tests for the SQL Credential Store
==================================
Runs against SQLite through aiosqlite.
"""

from datetime import datetime, timedelta, timezone

import pytest

from learnauth_core.accounts import SqlCredentialStore, User, UserRow
from learnauth_core.database import Base, create_async_engine, create_session_factory, session_scope


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/auth.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = create_session_factory(engine)
    async with session_scope(factory) as session:
        session.add_all([
            UserRow(user_id=1, name="Alice", email="Alice@Example.com", password_hash="$2b$04$x", role="Manager", org_id=4),
            UserRow(user_id=2, email="gone@example.com", deleted_on=datetime.now(timezone.utc)),
        ])

    yield factory
    await engine.dispose()


class TestSqlCredentialStore:
    """Tests for lookup and partial updates."""

    @pytest.mark.asyncio
    async def test_find_by_email(self, session_factory):
        """Should match emails case-insensitively."""
        store = SqlCredentialStore(session_factory)

        user = await store.find_by_email("alice@example.com")

        assert user.id == 1
        assert user.role == "Manager"
        assert user.org_id == 4
        assert user.failed_otp_attempts == 0
        assert user.account_locked_until is None

    @pytest.mark.asyncio
    async def test_soft_deleted_users_hidden(self, session_factory):
        """Should ignore soft-deleted rows."""
        store = SqlCredentialStore(session_factory)

        assert await store.find_by_email("gone@example.com") is None
        assert await store.find_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_save_persists_lockout_fields(self, session_factory):
        """Should persist attempts, lock and hash."""
        store = SqlCredentialStore(session_factory)
        locked_until = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)

        user = await store.find_by_email("alice@example.com")
        user.failed_otp_attempts = 5
        user.account_locked_until = locked_until
        user.password_hash = "$argon2id$new"
        await store.save(user)

        reloaded = await store.find_by_email("alice@example.com")
        assert reloaded.failed_otp_attempts == 5
        assert reloaded.account_locked_until == locked_until
        assert reloaded.account_locked_until.tzinfo is not None
        assert reloaded.password_hash == "$argon2id$new"

    @pytest.mark.asyncio
    async def test_save_missing_row(self, session_factory):
        """Should raise when the row does not exist."""
        store = SqlCredentialStore(session_factory)

        with pytest.raises(LookupError):
            await store.save(User(id=99, email="ghost@example.com"))

    @pytest.mark.asyncio
    async def test_drives_lockout_through_service(self, session_factory, kv, sink, config, clock):
        """Should hold lockout state written by the service."""
        from learnauth_core.errors import AccountLocked, InvalidOtp
        from learnauth_core.otp import OtpPurpose
        from learnauth_core.service import AuthService
        from learnauth_core.tokens import TokenIssuer

        store = SqlCredentialStore(session_factory)
        service = AuthService(kv, store, sink, TokenIssuer("s", clock=clock), config, clock=clock)
        await service.otps.store("alice@example.com", "123456", OtpPurpose.LOGIN)

        for _ in range(4):
            with pytest.raises(InvalidOtp):
                await service.verify_login_otp("alice@example.com", "654321", "10.0.0.1")
        with pytest.raises(AccountLocked):
            await service.verify_login_otp("alice@example.com", "654321", "10.0.0.1")

        user = await store.find_by_email("alice@example.com")
        assert user.failed_otp_attempts == 5
        assert user.account_locked_until == datetime.fromtimestamp(clock(), tz=timezone.utc) + timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_record_otp_failure_is_monotonic(self, session_factory):
        """Should never lower the count or clear an existing lock."""
        store = SqlCredentialStore(session_factory)
        locked_until = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)

        await store.record_otp_failure(
            User(id=1, email="alice@example.com", failed_otp_attempts=5, account_locked_until=locked_until)
        )
        await store.record_otp_failure(User(id=1, email="alice@example.com", failed_otp_attempts=2))

        user = await store.find_by_email("alice@example.com")
        assert user.failed_otp_attempts == 5
        assert user.account_locked_until == locked_until

    @pytest.mark.asyncio
    async def test_record_otp_failure_missing_row(self, session_factory):
        """Should raise when the row does not exist."""
        store = SqlCredentialStore(session_factory)

        with pytest.raises(LookupError):
            await store.record_otp_failure(User(id=99, email="ghost@example.com", failed_otp_attempts=1))

    @pytest.mark.asyncio
    async def test_concurrent_wrong_codes_lock_account(self, session_factory, kv, sink, config, clock):
        """Should lock and discard the code when wrong guesses arrive together."""
        import asyncio

        from learnauth_core.errors import AccountLocked, InvalidOtp
        from learnauth_core.otp import OtpPurpose
        from learnauth_core.service import AuthService
        from learnauth_core.tokens import TokenIssuer

        store = SqlCredentialStore(session_factory)
        service = AuthService(kv, store, sink, TokenIssuer("s", clock=clock), config, clock=clock)
        await service.otps.store("alice@example.com", "123456", OtpPurpose.LOGIN)

        results = await asyncio.gather(
            *(service.verify_login_otp("alice@example.com", "654321", "10.0.0.1") for _ in range(12)),
            return_exceptions=True,
        )

        assert all(isinstance(r, (InvalidOtp, AccountLocked)) for r in results)
        assert any(isinstance(r, AccountLocked) for r in results)

        user = await store.find_by_email("alice@example.com")
        assert user.failed_otp_attempts >= 5
        assert user.account_locked_until is not None
        assert await service.otps.validate("alice@example.com", "123456", OtpPurpose.LOGIN) is False
