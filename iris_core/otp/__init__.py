"""
OTP Issuance and Verification
=============================
Numeric codes wrapped in encrypted, self-describing tokens.
"""

from .models import (
    IssuedOTP,
    OTPData,
    VerificationResult,
    VerificationStatus,
    VERIFICATION_MESSAGES,
)
from .generator import generate_otp
from .crypto import encrypt, decrypt
from .service import OTPService

__all__ = [
    # Models
    "IssuedOTP",
    "OTPData",
    "VerificationResult",
    "VerificationStatus",
    "VERIFICATION_MESSAGES",
    # Generation
    "generate_otp",
    # Crypto
    "encrypt",
    "decrypt",
    # Service
    "OTPService",
]
