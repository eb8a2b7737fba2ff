"""
Unit Tests for OTP Issuance and Attempt Tracking
================================================
"""

import re

import pytest

from learnauth_core.otp import AttemptLedger, OtpIssuer, OtpPurpose


class TestOtpHashing:
    """Tests for code generation and hashing."""

    def test_generate_otp_six_digits(self):
        """Should generate a 6 digit numeric code."""
        from learnauth_core.otp import generate_otp

        for _ in range(50):
            assert re.fullmatch(r"[0-9]{6}", generate_otp(6))

    def test_generate_otp_rejects_zero_length(self):
        """Should refuse a non-positive length."""
        from learnauth_core.otp import generate_otp

        with pytest.raises(ValueError):
            generate_otp(0)

    def test_digest_matches_only_original(self):
        """Should verify only the original code."""
        from learnauth_core.otp import digest_otp, new_salt, otp_matches

        salt = new_salt()
        digest = digest_otp("123456", salt)

        assert otp_matches("123456", salt, digest) is True
        assert otp_matches("654321", salt, digest) is False


class TestOtpIssuer:
    """Tests for the OTP store lifecycle."""

    @pytest.mark.asyncio
    async def test_validate_does_not_consume(self, kv, config):
        """Should keep the code valid until it is deleted."""
        issuer = OtpIssuer(kv, config)
        code = await issuer.issue("bob@example.com", OtpPurpose.LOGIN)

        assert await issuer.validate("bob@example.com", code, OtpPurpose.LOGIN) is True
        assert await issuer.validate("bob@example.com", code, OtpPurpose.LOGIN) is True

        await issuer.delete("bob@example.com", OtpPurpose.LOGIN)
        assert await issuer.validate("bob@example.com", code, OtpPurpose.LOGIN) is False

    @pytest.mark.asyncio
    async def test_store_overwrites_previous_code(self, kv, config):
        """Should keep only the newest code per (identity, purpose)."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "111111", OtpPurpose.REGISTER)
        await issuer.store("bob@example.com", "222222", OtpPurpose.REGISTER)

        assert await issuer.validate("bob@example.com", "111111", OtpPurpose.REGISTER) is False
        assert await issuer.validate("bob@example.com", "222222", OtpPurpose.REGISTER) is True

    @pytest.mark.asyncio
    async def test_purposes_are_isolated(self, kv, config):
        """A login code should not verify a password reset."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "123456", OtpPurpose.LOGIN)

        assert await issuer.validate("bob@example.com", "123456", OtpPurpose.PASSWORD_RESET) is False

    @pytest.mark.asyncio
    async def test_code_expires(self, kv, config, clock):
        """Should stop validating after the expiry window."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "123456", OtpPurpose.LOGIN)

        clock.advance(config.otp_expiry_seconds + 1)

        assert await issuer.validate("bob@example.com", "123456", OtpPurpose.LOGIN) is False

    @pytest.mark.asyncio
    async def test_identity_is_case_insensitive(self, kv, config):
        """Should treat differently cased emails as one identity."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("Bob@Example.com", "123456", OtpPurpose.LOGIN)

        assert await issuer.validate("bob@example.com", "123456", OtpPurpose.LOGIN) is True

    @pytest.mark.asyncio
    async def test_code_is_not_stored_in_clear(self, kv, config):
        """Should persist only a salted hash."""
        from learnauth_core.kv import keys

        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "123456", OtpPurpose.LOGIN)

        stored = await kv.get(keys.otp_key("login", "bob@example.com"))
        assert "123456" not in str(stored)
        assert set(stored) == {"salt", "hash"}

    @pytest.mark.asyncio
    async def test_consume_claims_code_once(self, kv, config):
        """Should succeed once for the right code and leave the record on a wrong one."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "123456", OtpPurpose.LOGIN)

        assert await issuer.consume("bob@example.com", "654321", OtpPurpose.LOGIN) is False
        assert await issuer.consume("bob@example.com", "123456", OtpPurpose.LOGIN) is True
        assert await issuer.consume("bob@example.com", "123456", OtpPurpose.LOGIN) is False

    @pytest.mark.asyncio
    async def test_consume_rejects_record_replaced_after_validation(self, kv, config):
        """Should not accept an old code when a newer record was popped."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "123456", OtpPurpose.LOGIN)

        original_pop = kv.pop

        async def pop_after_resend(key):
            await issuer.store("bob@example.com", "999999", OtpPurpose.LOGIN)
            return await original_pop(key)

        kv.pop = pop_after_resend

        assert await issuer.consume("bob@example.com", "123456", OtpPurpose.LOGIN) is False

    @pytest.mark.asyncio
    async def test_empty_code_rejected(self, kv, config):
        """Should reject an empty submission."""
        issuer = OtpIssuer(kv, config)
        await issuer.store("bob@example.com", "123456", OtpPurpose.LOGIN)

        assert await issuer.validate("bob@example.com", "", OtpPurpose.LOGIN) is False


class TestAttemptLedger:
    """Tests for failed-attempt and resend counters."""

    @pytest.mark.asyncio
    async def test_remaining_attempts_decrease(self, kv, config):
        """Should count down from max attempts to zero."""
        ledger = AttemptLedger(kv, config)

        for expected in (4, 3, 2, 1, 0, 0):
            await ledger.track_attempt("bob@example.com", OtpPurpose.LOGIN)
            assert await ledger.remaining_attempts("bob@example.com", OtpPurpose.LOGIN) == expected

    @pytest.mark.asyncio
    async def test_reset_attempts(self, kv, config):
        """Should clear the counter."""
        ledger = AttemptLedger(kv, config)
        await ledger.track_attempt("bob@example.com", OtpPurpose.LOGIN)
        await ledger.reset_attempts("bob@example.com", OtpPurpose.LOGIN)

        assert await ledger.remaining_attempts("bob@example.com", OtpPurpose.LOGIN) == 5

    @pytest.mark.asyncio
    async def test_attempts_expire_with_otp_window(self, kv, config, clock):
        """Should forget attempts once the OTP window lapses."""
        ledger = AttemptLedger(kv, config)
        await ledger.track_attempt("bob@example.com", OtpPurpose.LOGIN)

        clock.advance(config.otp_expiry_seconds)

        assert await ledger.attempt_count("bob@example.com", OtpPurpose.LOGIN) == 0

    @pytest.mark.asyncio
    async def test_resend_allowance(self, kv, config, clock):
        """Should allow three resends per hour."""
        ledger = AttemptLedger(kv, config)

        for _ in range(3):
            assert await ledger.can_resend("bob@example.com") is True
            await ledger.track_resend("bob@example.com")

        assert await ledger.can_resend("bob@example.com") is False

        clock.advance(3600)
        assert await ledger.can_resend("bob@example.com") is True
