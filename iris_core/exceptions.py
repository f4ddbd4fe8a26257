"""
Iris Exceptions
===============
Exception classes raised by the OTP library.

Only configuration and transport problems are raised. Bad user input
(wrong code, expired or tampered token) is returned as a
VerificationResult instead.
"""

from typing import Optional


class IrisError(Exception):
    """Base exception for all iris-core errors."""
    pass


class ConfigurationError(IrisError):
    """Raised when the library is constructed with missing or invalid settings."""
    pass


class TokenDecodeError(IrisError):
    """Raised by the crypto layer when a token cannot be decrypted."""
    pass


class EmailDeliveryError(IrisError):
    """Raised when the email transport fails to accept a message."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ):
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.details = details
        super().__init__(f"[{provider}] {message} (Status: {status_code})")
