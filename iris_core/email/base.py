"""
Email Sender Base
=================
Base classes for email transports that deliver OTP codes.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
import structlog

logger = structlog.get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


def html_to_text(html: str) -> str:
    """Crude plain-text fallback: strip tags."""
    return _TAG_RE.sub("", html)


@dataclass
class EmailAddress:
    """An address with an optional display name."""
    email: str
    name: Optional[str] = None


@dataclass
class EmailMessage:
    """A rendered email ready for delivery."""
    recipient: str
    subject: str
    body_html: str
    text: Optional[str] = field(default=None)
    sender: Optional[EmailAddress] = None  # Overrides the transport default

    def __post_init__(self):
        if self.text is None:
            self.text = html_to_text(self.body_html)


@dataclass
class EmailResult:
    """Result of a successful send."""
    success: bool
    message_id: Optional[str] = None


class BaseEmailSender(ABC):
    """
    Abstract base class for email transports.

    Implementations raise EmailDeliveryError when the transport rejects a
    message; they never retry.
    """

    name: str = "base"

    def __init__(self):
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize the sender (e.g., create HTTP clients)."""
        self._is_initialized = True
        logger.info("Email sender initialized", provider=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        self._is_initialized = False
        logger.info("Email sender closed", provider=self.name)

    async def verify_connection(self) -> bool:
        """
        Check that the transport is reachable and the credentials work.

        Never raises; returns False on any failure.
        """
        return self._is_initialized

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Deliver a message.

        Raises:
            EmailDeliveryError: If the transport fails
        """

    async def __aenter__(self) -> "BaseEmailSender":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
