"""
OTP Service
===========
Issues numeric codes inside encrypted tokens and verifies them later.

The service keeps no record of outstanding tokens: everything needed to
verify a code travels inside the token itself.
"""

import hmac
import json
from typing import Optional
import structlog

from .. import metrics
from ..config import IrisSettings, OTPConfig
from ..exceptions import ConfigurationError, TokenDecodeError
from ..timeutils import Clock, MS_PER_MINUTE, now_ms as wall_clock_ms
from .crypto import decrypt, encrypt
from .generator import generate_otp
from .models import IssuedOTP, OTPData, VerificationResult, VerificationStatus

logger = structlog.get_logger(__name__)


def _codes_match(submitted: str, stored: str) -> bool:
    """Constant-time exact comparison; unencodable input never matches."""
    try:
        return hmac.compare_digest(submitted.encode(), stored.encode())
    except UnicodeError:
        return False


class OTPService:
    """Stateless OTP issuance and verification."""

    def __init__(
        self,
        secret_key: str,
        config: Optional[OTPConfig] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            secret_key: Server-held secret used to encrypt tokens
            config: OTP defaults (length, expiry)
            clock: Millisecond clock, defaults to wall-clock time

        Raises:
            ConfigurationError: If secret_key is missing
        """
        if not secret_key:
            raise ConfigurationError("OTPService: secret_key is required")
        self._secret_key = secret_key
        self.config = config or OTPConfig()
        self._clock = clock or wall_clock_ms

    @classmethod
    def from_settings(cls, settings: IrisSettings) -> "OTPService":
        return cls(settings.secret_key, config=settings.otp)

    def generate_otp(self, length: Optional[int] = None) -> str:
        """Generate a numeric code, defaulting to the configured length."""
        return generate_otp(self.config.length if length is None else length)

    def encrypt_otp(self, otp: str, timestamp: Optional[int] = None) -> str:
        """
        Encrypt OTP data into an opaque token.

        Args:
            otp: The code
            timestamp: Issuance time in epoch millis (default: now)

        Returns:
            Encrypted token string
        """
        data = OTPData(
            otp=otp,
            timestamp=self._clock() if timestamp is None else timestamp,
        )
        payload = json.dumps(data.to_dict(), separators=(",", ":"))
        return encrypt(payload, self._secret_key)

    def decrypt_otp(self, token: str) -> Optional[OTPData]:
        """
        Decrypt a token back into OTP data.

        Returns:
            OTPData, or None if the token is corrupt, tampered with, or
            encrypted under another key
        """
        if not isinstance(token, str) or not token:
            logger.warning("OTP token missing or not a string")
            return None

        try:
            payload = json.loads(decrypt(token, self._secret_key))
        except TokenDecodeError:
            logger.warning("OTP token failed to decrypt")
            return None
        except ValueError:
            logger.warning("OTP token payload is not valid JSON")
            return None

        if not isinstance(payload, dict):
            logger.warning("OTP token payload has unexpected shape")
            return None

        otp = payload.get("otp")
        timestamp = payload.get("timestamp")
        if (
            not isinstance(otp, str)
            or isinstance(timestamp, bool)
            or not isinstance(timestamp, int)
        ):
            logger.warning("OTP token payload has unexpected shape")
            return None

        return OTPData(otp=otp, timestamp=timestamp)

    def issue(
        self,
        length: Optional[int] = None,
        now_ms: Optional[int] = None,
    ) -> IssuedOTP:
        """
        Generate a code and wrap it in a token.

        Args:
            length: Code length (default: configured length)
            now_ms: Issuance time in epoch millis (default: now)

        Returns:
            IssuedOTP with the plaintext code for delivery and the token
            for later verification
        """
        issued_at = self._clock() if now_ms is None else now_ms
        code = self.generate_otp(length)
        token = self.encrypt_otp(code, issued_at)

        metrics.record_issued()
        logger.info("OTP issued", length=len(code), issued_at=issued_at)

        return IssuedOTP(code=code, token=token, issued_at=issued_at)

    def verify(
        self,
        input_otp: str,
        token: str,
        expiry_minutes: Optional[int] = None,
        now_ms: Optional[int] = None,
    ) -> VerificationResult:
        """
        Verify a user-submitted code against a token.

        Checks run in order: token decodes, token is not older than the
        expiry window, code matches exactly. A token is expired only when
        its age is strictly greater than the window.

        Args:
            input_otp: Code provided by the user
            token: Token returned from issue()
            expiry_minutes: Validity window (default: configured expiry)
            now_ms: Verification time in epoch millis (default: now)

        Returns:
            VerificationResult; never raises on bad input
        """
        result = self._verify(input_otp, token, expiry_minutes, now_ms)
        metrics.record_verification(result.status.value)
        if result.valid:
            logger.info("OTP verified successfully")
        else:
            logger.warning("OTP verification failed", status=result.status.value)
        return result

    def _verify(
        self,
        input_otp: str,
        token: str,
        expiry_minutes: Optional[int],
        now_ms: Optional[int],
    ) -> VerificationResult:
        data = self.decrypt_otp(token)
        if data is None:
            return VerificationResult.of(VerificationStatus.INVALID)

        if expiry_minutes is None:
            expiry_minutes = self.config.expiry_minutes
        current_time = self._clock() if now_ms is None else now_ms
        otp_age = current_time - data.timestamp

        if otp_age > expiry_minutes * MS_PER_MINUTE:
            return VerificationResult.of(VerificationStatus.EXPIRED)

        if not isinstance(input_otp, str) or not _codes_match(input_otp, data.otp):
            return VerificationResult.of(VerificationStatus.MISMATCH)

        return VerificationResult.of(VerificationStatus.VALID)

    async def aissue(
        self,
        length: Optional[int] = None,
        now_ms: Optional[int] = None,
    ) -> IssuedOTP:
        """Awaitable issue() for callers running inside an event loop."""
        return self.issue(length=length, now_ms=now_ms)

    async def averify(
        self,
        input_otp: str,
        token: str,
        expiry_minutes: Optional[int] = None,
        now_ms: Optional[int] = None,
    ) -> VerificationResult:
        """Awaitable verify()."""
        return self.verify(input_otp, token, expiry_minutes=expiry_minutes, now_ms=now_ms)
