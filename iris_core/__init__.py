"""
Iris Core Library
=================
One-time passcode issuance, verification and rate limiting.
"""

__version__ = "0.1.0"

# Configuration
from iris_core.config import OTPConfig, IrisSettings

# Errors
from iris_core.exceptions import (
    IrisError,
    ConfigurationError,
    TokenDecodeError,
    EmailDeliveryError,
)

# OTP
from iris_core.otp import (
    generate_otp,
    OTPService,
    OTPData,
    IssuedOTP,
    VerificationResult,
    VerificationStatus,
)

# Rate Limiting
from iris_core.rate_limit import (
    OTPRateTracker,
    OTPSession,
    RateLimitStatus,
    CooldownStatus,
    KeyValueStore,
    InMemoryStore,
    RedisStore,
)

# Email
from iris_core.email import (
    BaseEmailSender,
    BrevoEmailSender,
    EmailAddress,
    EmailMessage,
    EmailResult,
    render_otp_email,
)

# Service
from iris_core.mailer import IrisMailService, OTPRequestResult, OTPRequestStatus

# Utilities
from iris_core.timeutils import format_time, now_ms
from iris_core.log import configure_logging
from iris_core.metrics import get_metrics_text

__all__ = [
    # Configuration
    "OTPConfig",
    "IrisSettings",
    # Errors
    "IrisError",
    "ConfigurationError",
    "TokenDecodeError",
    "EmailDeliveryError",
    # OTP
    "generate_otp",
    "OTPService",
    "OTPData",
    "IssuedOTP",
    "VerificationResult",
    "VerificationStatus",
    # Rate Limiting
    "OTPRateTracker",
    "OTPSession",
    "RateLimitStatus",
    "CooldownStatus",
    "KeyValueStore",
    "InMemoryStore",
    "RedisStore",
    # Email
    "BaseEmailSender",
    "BrevoEmailSender",
    "EmailAddress",
    "EmailMessage",
    "EmailResult",
    "render_otp_email",
    # Service
    "IrisMailService",
    "OTPRequestResult",
    "OTPRequestStatus",
    # Utilities
    "format_time",
    "now_ms",
    "configure_logging",
    "get_metrics_text",
]
