"""
Unit Tests for OTP Issuance and Verification
=============================================
"""

import base64
import json

import pytest

from iris_core.exceptions import ConfigurationError, TokenDecodeError
from iris_core.otp import (
    OTPService,
    VerificationStatus,
    decrypt,
    encrypt,
    generate_otp,
)


class TestGenerateOTP:
    """Tests for numeric code generation."""

    @pytest.mark.parametrize("length", range(1, 11))
    def test_exact_length_no_leading_zero(self, length):
        """Should produce exactly `length` digits, never starting with 0."""
        for _ in range(200):
            otp = generate_otp(length)
            assert len(otp) == length
            assert otp.isdigit()
            assert otp[0] != "0"

    def test_default_length(self):
        """Should default to six digits."""
        assert len(generate_otp()) == 6

    def test_single_digit_range(self):
        """Should draw single-digit codes from 1..9."""
        seen = {generate_otp(1) for _ in range(500)}
        assert "0" not in seen
        assert seen <= set("123456789")

    @pytest.mark.parametrize("length", [0, -3])
    def test_rejects_non_positive_length(self, length):
        """Should reject lengths below one."""
        with pytest.raises(ValueError):
            generate_otp(length)


class TestCrypto:
    """Tests for token encryption."""

    def test_ciphertext_hides_plaintext(self, secret_key):
        """Should not expose the plaintext inside the token."""
        token = encrypt('{"otp":"123456","timestamp":1}', secret_key)
        assert b"123456" not in base64.urlsafe_b64decode(token)
        assert decrypt(token, secret_key) == '{"otp":"123456","timestamp":1}'

    def test_wrong_key_raises(self, secret_key):
        """Should refuse to decrypt with another key."""
        token = encrypt("hello", secret_key)
        with pytest.raises(TokenDecodeError):
            decrypt(token, "another-secret")

    def test_garbage_raises(self, secret_key):
        """Should refuse to decrypt arbitrary strings."""
        with pytest.raises(TokenDecodeError):
            decrypt("not-a-token", secret_key)


class TestOTPService:
    """Tests for OTPService."""

    def test_requires_secret_key(self):
        """Should fail loudly without a secret key."""
        with pytest.raises(ConfigurationError):
            OTPService("")

    def test_issue_returns_code_and_opaque_token(self, service):
        """Should return the code and an opaque token."""
        issued = service.issue(now_ms=1_000)

        assert len(issued.code) == 6
        assert issued.issued_at == 1_000
        assert b"otp" not in base64.urlsafe_b64decode(issued.token)
        assert "***" in repr(issued)

    def test_issue_custom_length(self, service):
        """Should honor a per-call code length."""
        assert len(service.issue(length=8).code) == 8

    def test_issue_uses_clock(self, service, clock):
        """Should stamp the token with the injected clock."""
        clock.now = 42_000
        issued = service.issue()
        assert service.decrypt_otp(issued.token).timestamp == 42_000

    def test_decrypt_round_trip(self, service):
        """Should recover code and timestamp from a token."""
        token = service.encrypt_otp("654321", timestamp=123)
        data = service.decrypt_otp(token)

        assert data.otp == "654321"
        assert data.timestamp == 123

    def test_decrypt_bad_token_returns_none(self, service):
        """Should return None for unusable tokens."""
        assert service.decrypt_otp("garbage") is None
        assert service.decrypt_otp("") is None
        assert service.decrypt_otp(None) is None

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            json.dumps([1, 2, 3]),
            json.dumps({"otp": 123456, "timestamp": 0}),
            json.dumps({"otp": "123456"}),
            json.dumps({"otp": "123456", "timestamp": "0"}),
            json.dumps({"otp": "123456", "timestamp": True}),
        ],
    )
    def test_decrypt_malformed_payload_returns_none(self, service, secret_key, payload):
        """Should return None when the decrypted payload has the wrong shape."""
        token = encrypt(payload, secret_key)
        assert service.decrypt_otp(token) is None

    def test_verify_valid(self, service):
        """Should accept the right code inside the window."""
        issued = service.issue(now_ms=0)
        result = service.verify(issued.code, issued.token, now_ms=60_000)

        assert result.status is VerificationStatus.VALID
        assert result.valid is True
        assert result.message == "OTP verified successfully"

    def test_verify_mismatch(self, service):
        """Should report a wrong code as a mismatch."""
        token = service.encrypt_otp("123456", timestamp=0)
        result = service.verify("123457", token, now_ms=1_000)

        assert result.status is VerificationStatus.MISMATCH
        assert result.message == "Incorrect OTP"
        assert not result.valid

    def test_verify_is_exact_string_match(self, service):
        """Should not normalize whitespace."""
        token = service.encrypt_otp("123456", timestamp=0)
        assert service.verify(" 123456", token, now_ms=0).status is VerificationStatus.MISMATCH
        assert service.verify("123456 ", token, now_ms=0).status is VerificationStatus.MISMATCH

    def test_verify_non_string_input_is_mismatch(self, service):
        """Should treat non-string input as a mismatch."""
        token = service.encrypt_otp("123456", timestamp=0)
        assert service.verify(123456, token, now_ms=0).status is VerificationStatus.MISMATCH

    @pytest.mark.parametrize("submitted", ["\ud800", "12345\udfff", "１２３４５６"])
    def test_verify_unencodable_input_is_mismatch(self, service, submitted):
        """Should return a mismatch, not raise, for surrogates and odd digits."""
        token = service.encrypt_otp("123456", timestamp=0)

        result = service.verify(submitted, token, now_ms=0)

        assert result.status is VerificationStatus.MISMATCH

    def test_verify_wrong_key_is_invalid_not_mismatch(self, service):
        """Should report a foreign token as invalid, never as a mismatch."""
        other = OTPService("some-other-secret")
        token = other.encrypt_otp("123456", timestamp=0)

        result = service.verify("123456", token, now_ms=0)

        assert result.status is VerificationStatus.INVALID
        assert result.message == "Invalid OTP data"

    def test_verify_tampered_token_is_invalid(self, service):
        """Should report a modified token as invalid."""
        token = service.encrypt_otp("123456", timestamp=0)
        middle = len(token) // 2
        swapped = "B" if token[middle] == "A" else "A"
        tampered = token[:middle] + swapped + token[middle + 1:]

        assert service.verify("123456", tampered, now_ms=0).status is VerificationStatus.INVALID

    def test_expired_checked_before_match(self, service):
        """Should report expiry even when the code is also wrong."""
        token = service.encrypt_otp("123456", timestamp=0)
        result = service.verify("000000", token, now_ms=5 * 60_000 + 1)

        assert result.status is VerificationStatus.EXPIRED
        assert result.message == "OTP has expired"

    def test_expiry_boundary_is_exclusive(self, service):
        """Should accept age equal to the window and expire one ms later."""
        token = service.encrypt_otp("123456", timestamp=1_000)

        at_boundary = service.verify("123456", token, now_ms=1_000 + 5 * 60_000)
        past_boundary = service.verify("123456", token, now_ms=1_000 + 5 * 60_000 + 1)

        assert at_boundary.status is VerificationStatus.VALID
        assert past_boundary.status is VerificationStatus.EXPIRED

    def test_custom_expiry_minutes(self, service):
        """Should honor a per-call expiry window."""
        token = service.encrypt_otp("123456", timestamp=0)

        assert service.verify("123456", token, expiry_minutes=1, now_ms=60_001).status is VerificationStatus.EXPIRED
        assert service.verify("123456", token, expiry_minutes=10, now_ms=60_001).status is VerificationStatus.VALID

    def test_scenario_valid_then_expired(self, service):
        """Should verify at 4:59 and report expiry at 5:01."""
        issued = service.issue(length=6, now_ms=0)

        first = service.verify(issued.code, issued.token, expiry_minutes=5, now_ms=299_000)
        second = service.verify(issued.code, issued.token, expiry_minutes=5, now_ms=301_000)

        assert first.status is VerificationStatus.VALID
        assert second.status is VerificationStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_async_wrappers(self, service):
        """Should issue and verify through the awaitable API."""
        issued = await service.aissue(now_ms=0)
        result = await service.averify(issued.code, issued.token, now_ms=1)

        assert result.valid
