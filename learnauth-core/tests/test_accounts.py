"""
Unit Tests for Account Lockout and Credential Stores
====================================================
"""

from datetime import datetime, timedelta, timezone

import pytest

from learnauth_core.accounts import AccountState, InMemoryCredentialStore, LockoutPolicy, User

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestLockoutPolicy:
    """Tests for the ACTIVE/LOCKED state machine."""

    def test_failures_below_threshold_stay_active(self):
        """Should stay ACTIVE until the fifth failure."""
        policy = LockoutPolicy()
        user = User(id=1, email="a@example.com")

        for expected_remaining in (4, 3, 2, 1):
            assert policy.record_failure(user, NOW) is AccountState.ACTIVE
            assert policy.remaining_attempts(user) == expected_remaining

        assert user.account_locked_until is None

    def test_fifth_failure_locks_for_thirty_minutes(self):
        """Should lock for 30 minutes on reaching the threshold."""
        policy = LockoutPolicy()
        user = User(id=1, email="a@example.com", failed_otp_attempts=4)

        assert policy.record_failure(user, NOW) is AccountState.LOCKED
        assert user.account_locked_until == NOW + timedelta(minutes=30)
        assert user.failed_otp_attempts == 5
        assert policy.minutes_remaining(user, NOW) == 30

    def test_observed_attempts_override_stale_row(self):
        """Should lock when the atomic count reaches the threshold even if the row lags."""
        policy = LockoutPolicy()
        user = User(id=1, email="a@example.com", failed_otp_attempts=0)

        assert policy.record_failure(user, NOW, observed_attempts=5) is AccountState.LOCKED
        assert user.failed_otp_attempts == 5
        assert user.account_locked_until == NOW + timedelta(minutes=30)

    def test_row_count_wins_when_higher(self):
        """Should keep counting from the row when it is ahead of the atomic count."""
        policy = LockoutPolicy()
        user = User(id=1, email="a@example.com", failed_otp_attempts=3)

        assert policy.record_failure(user, NOW, observed_attempts=1) is AccountState.ACTIVE
        assert user.failed_otp_attempts == 4

    def test_minutes_remaining_rounds_up(self):
        """Should report whole minutes rounded up."""
        policy = LockoutPolicy()
        user = User(id=1, email="a@example.com", account_locked_until=NOW + timedelta(seconds=61))

        assert policy.minutes_remaining(user, NOW) == 2
        assert policy.minutes_remaining(user, NOW + timedelta(seconds=60)) == 1

    def test_expired_lock_is_active(self):
        """Should treat a past lock as ACTIVE without clearing attempts."""
        policy = LockoutPolicy()
        user = User(
            id=1,
            email="a@example.com",
            failed_otp_attempts=5,
            account_locked_until=NOW - timedelta(seconds=1),
        )

        assert policy.state(user, NOW) is AccountState.ACTIVE
        assert policy.minutes_remaining(user, NOW) == 0
        assert user.failed_otp_attempts == 5

    def test_reset_clears_both_fields(self):
        """Should clear attempts and lock together."""
        policy = LockoutPolicy()
        user = User(
            id=1,
            email="a@example.com",
            failed_otp_attempts=5,
            account_locked_until=NOW + timedelta(minutes=10),
        )

        policy.reset(user)

        assert user.failed_otp_attempts == 0
        assert user.account_locked_until is None


class TestInMemoryCredentialStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_find_by_email_is_case_insensitive(self):
        """Should find users regardless of email case."""
        store = InMemoryCredentialStore([User(id=1, email="Alice@Example.com")])

        user = await store.find_by_email("alice@example.com")

        assert user is not None
        assert user.id == 1

    @pytest.mark.asyncio
    async def test_unsaved_changes_do_not_leak(self):
        """Should only persist on save."""
        store = InMemoryCredentialStore([User(id=1, email="a@example.com")])

        user = await store.find_by_email("a@example.com")
        user.failed_otp_attempts = 3
        assert store.get("a@example.com").failed_otp_attempts == 0

        await store.save(user)
        assert store.get("a@example.com").failed_otp_attempts == 3

    @pytest.mark.asyncio
    async def test_save_updates_only_auth_fields(self):
        """Should ignore changes outside the auth columns."""
        store = InMemoryCredentialStore([User(id=1, email="a@example.com", name="Alice")])

        user = await store.find_by_email("a@example.com")
        user.name = "Mallory"
        user.password_hash = "$argon2id$x"
        await store.save(user)

        stored = store.get("a@example.com")
        assert stored.name == "Alice"
        assert stored.password_hash == "$argon2id$x"

    @pytest.mark.asyncio
    async def test_save_unknown_user_raises(self):
        """Should refuse to save a user it does not hold."""
        store = InMemoryCredentialStore()

        with pytest.raises(LookupError):
            await store.save(User(id=9, email="ghost@example.com"))

    @pytest.mark.asyncio
    async def test_record_otp_failure_never_lowers_or_unlocks(self):
        """Should merge failures without undoing a lock written by another request."""
        locked_until = NOW + timedelta(minutes=30)
        store = InMemoryCredentialStore([
            User(id=1, email="a@example.com", failed_otp_attempts=5, account_locked_until=locked_until),
        ])

        await store.record_otp_failure(User(id=1, email="a@example.com", failed_otp_attempts=2))

        stored = store.get("a@example.com")
        assert stored.failed_otp_attempts == 5
        assert stored.account_locked_until == locked_until

    @pytest.mark.asyncio
    async def test_record_otp_failure_raises_count_and_extends_lock(self):
        """Should take the higher count and the later lock."""
        store = InMemoryCredentialStore([
            User(id=1, email="a@example.com", failed_otp_attempts=5, account_locked_until=NOW),
        ])
        later = NOW + timedelta(minutes=30)

        await store.record_otp_failure(
            User(id=1, email="a@example.com", failed_otp_attempts=6, account_locked_until=later)
        )

        stored = store.get("a@example.com")
        assert stored.failed_otp_attempts == 6
        assert stored.account_locked_until == later
