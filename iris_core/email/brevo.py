"""
Brevo Email Sender
==================
Transactional email delivery through the Brevo REST API.
"""

import httpx
from typing import Optional
import structlog

from .. import metrics
from ..exceptions import ConfigurationError, EmailDeliveryError
from ..log import mask_recipient
from .base import BaseEmailSender, EmailMessage, EmailResult

logger = structlog.get_logger(__name__)

BREVO_API_URL = "https://api.brevo.com"


class BrevoEmailSender(BaseEmailSender):
    """Sends email via Brevo's ``/v3/smtp/email`` endpoint."""

    name = "brevo"

    def __init__(
        self,
        api_key: Optional[str],
        sender_email: Optional[str],
        sender_name: str = "Iris",
        base_url: str = BREVO_API_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Brevo API key
            sender_email: Verified sender address
            sender_name: Display name for the sender
            base_url: API root, overridable for testing
            timeout: Request timeout in seconds
            transport: Optional httpx transport (for tests)

        Raises:
            ConfigurationError: If api_key or sender_email is missing
        """
        super().__init__()
        if not api_key:
            raise ConfigurationError("BrevoEmailSender: api_key is required")
        if not sender_email:
            raise ConfigurationError("BrevoEmailSender: sender_email is required")

        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "accept": "application/json",
                "api-key": self.api_key,
                "content-type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def verify_connection(self) -> bool:
        """Check Brevo API availability and credentials."""
        if not self._client:
            return False

        try:
            response = await self._client.get("/v3/account")
        except httpx.HTTPError as e:
            logger.error("Brevo connection check failed", error=str(e))
            return False

        if response.status_code != 200:
            logger.error("Brevo connection check rejected", status_code=response.status_code)
            return False
        return True

    def _payload(self, message: EmailMessage) -> dict:
        if message.sender is not None:
            sender = {
                "email": message.sender.email,
                "name": message.sender.name or self.sender_name,
            }
        else:
            sender = {"email": self.sender_email, "name": self.sender_name}

        payload = {
            "sender": sender,
            "to": [{"email": message.recipient}],
            "subject": message.subject,
            "htmlContent": message.body_html,
        }
        if message.text:
            payload["textContent"] = message.text
        return payload

    async def send(self, message: EmailMessage) -> EmailResult:
        """Send an email via Brevo."""
        if not self._client:
            raise RuntimeError("Sender not initialized")

        try:
            response = await self._client.post("/v3/smtp/email", json=self._payload(message))
        except httpx.HTTPError as e:
            metrics.record_email_send(self.name, success=False)
            logger.error(
                "Brevo send failed",
                recipient=mask_recipient(message.recipient),
                error=str(e),
            )
            raise EmailDeliveryError("Transport error", provider=self.name, details=str(e)) from e

        if response.status_code >= 300:
            metrics.record_email_send(self.name, success=False)
            logger.error(
                "Brevo rejected email",
                recipient=mask_recipient(message.recipient),
                status_code=response.status_code,
            )
            raise EmailDeliveryError(
                "Email rejected",
                provider=self.name,
                status_code=response.status_code,
                details=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        message_id = data.get("messageId") if isinstance(data, dict) else None

        metrics.record_email_send(self.name, success=True)
        logger.info(
            "Email sent",
            provider=self.name,
            recipient=mask_recipient(message.recipient),
            message_id=message_id,
        )
        return EmailResult(success=True, message_id=message_id)
