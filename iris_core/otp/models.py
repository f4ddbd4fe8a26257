"""
OTP Models
==========
Data models and enums for OTP issuance and verification.
"""

from dataclasses import dataclass
from enum import Enum


class VerificationStatus(str, Enum):
    """Outcome of verifying a code against a token."""
    VALID = "valid"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    INVALID = "invalid"  # Token could not be decrypted or parsed


VERIFICATION_MESSAGES = {
    VerificationStatus.VALID: "OTP verified successfully",
    VerificationStatus.EXPIRED: "OTP has expired",
    VerificationStatus.MISMATCH: "Incorrect OTP",
    VerificationStatus.INVALID: "Invalid OTP data",
}


@dataclass(frozen=True)
class OTPData:
    """Decrypted contents of an OTP token."""
    otp: str
    timestamp: int  # Epoch millis at issuance

    def to_dict(self) -> dict:
        return {"otp": self.otp, "timestamp": self.timestamp}


@dataclass(frozen=True)
class IssuedOTP:
    """A freshly issued code and the opaque token that proves it."""
    code: str
    token: str
    issued_at: int  # Epoch millis

    def __repr__(self) -> str:
        # Keep the plaintext code out of logs and tracebacks
        return f"IssuedOTP(code='***', token='{self.token[:8]}...', issued_at={self.issued_at})"


@dataclass(frozen=True)
class VerificationResult:
    """Tagged result of a verification attempt."""
    status: VerificationStatus
    message: str

    @classmethod
    def of(cls, status: VerificationStatus) -> "VerificationResult":
        return cls(status=status, message=VERIFICATION_MESSAGES[status])

    @property
    def valid(self) -> bool:
        return self.status is VerificationStatus.VALID
