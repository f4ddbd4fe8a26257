"""
Unit Tests for Email Delivery
=============================
"""

import json

import httpx
import pytest

from iris_core.email import BrevoEmailSender, EmailAddress, EmailMessage, render_otp_email
from iris_core.exceptions import ConfigurationError, EmailDeliveryError


def make_sender(handler):
    return BrevoEmailSender(
        api_key="brevo-key",
        sender_email="noreply@example.com",
        sender_name="Iris",
        base_url="https://brevo.test",
        transport=httpx.MockTransport(handler),
    )


class TestEmailMessage:
    """Tests for the message model."""

    def test_text_fallback_strips_tags(self):
        """Should derive plain text from the HTML body."""
        message = EmailMessage("a@b.com", "Hi", "<p>Hello <b>there</b></p>")
        assert message.text == "Hello there"

    def test_explicit_text_kept(self):
        """Should keep explicitly supplied plain text."""
        message = EmailMessage("a@b.com", "Hi", "<p>x</p>", text="plain")
        assert message.text == "plain"

    def test_sender_defaults_to_none(self):
        """Should leave the sender unset unless given."""
        assert EmailMessage("a@b.com", "Hi", "<p>x</p>").sender is None


class TestRenderOTPEmail:
    """Tests for the OTP email template."""

    def test_contains_code_and_expiry(self):
        """Should include the code and the expiry in minutes."""
        subject, body = render_otp_email("123456", expiry_minutes=5, app_name="Acme")

        assert subject == "Your Acme verification code"
        assert "123456" in body
        assert "5 minutes" in body

    def test_escapes_app_name(self):
        """Should escape HTML in the app name."""
        _, body = render_otp_email("1", app_name="<script>")
        assert "<script>" not in body


class TestBrevoEmailSender:
    """Tests for the Brevo transport."""

    def test_requires_credentials(self):
        """Should reject a missing API key or sender address."""
        with pytest.raises(ConfigurationError):
            BrevoEmailSender(api_key="", sender_email="a@b.com")
        with pytest.raises(ConfigurationError):
            BrevoEmailSender(api_key="key", sender_email=None)

    @pytest.mark.asyncio
    async def test_send_success(self):
        """Should post the message and return the Brevo message id."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["api_key"] = request.headers["api-key"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(201, json={"messageId": "<msg-1@brevo>"})

        message = EmailMessage("user@example.com", "Code", "<p>123456</p>")
        async with make_sender(handler) as sender:
            result = await sender.send(message)

        assert result.success is True
        assert result.message_id == "<msg-1@brevo>"
        assert captured["url"] == "https://brevo.test/v3/smtp/email"
        assert captured["api_key"] == "brevo-key"
        assert captured["body"]["to"] == [{"email": "user@example.com"}]
        assert captured["body"]["sender"] == {"email": "noreply@example.com", "name": "Iris"}
        assert captured["body"]["htmlContent"] == "<p>123456</p>"
        assert captured["body"]["textContent"] == "123456"

    @pytest.mark.asyncio
    async def test_per_message_sender_override(self):
        """Should use the message's sender instead of the default."""
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"messageId": "m"})

        async with make_sender(handler) as sender:
            await sender.send(EmailMessage(
                "user@example.com", "Code", "<p>1</p>",
                sender=EmailAddress("security@example.com", "Acme Security"),
            ))
            await sender.send(EmailMessage(
                "user@example.com", "Code", "<p>1</p>",
                sender=EmailAddress("alerts@example.com"),
            ))

        assert bodies[0]["sender"] == {"email": "security@example.com", "name": "Acme Security"}
        assert bodies[1]["sender"] == {"email": "alerts@example.com", "name": "Iris"}

    @pytest.mark.asyncio
    async def test_rejected_raises(self):
        """Should raise EmailDeliveryError with the status on rejection."""
        def handler(request):
            return httpx.Response(401, json={"message": "Key not found"})

        message = EmailMessage("user@example.com", "Code", "<p>1</p>")
        async with make_sender(handler) as sender:
            with pytest.raises(EmailDeliveryError) as exc_info:
                await sender.send(message)

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "brevo"

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        """Should wrap transport failures in EmailDeliveryError."""
        def handler(request):
            raise httpx.ConnectError("connection refused")

        message = EmailMessage("user@example.com", "Code", "<p>1</p>")
        async with make_sender(handler) as sender:
            with pytest.raises(EmailDeliveryError):
                await sender.send(message)

    @pytest.mark.asyncio
    async def test_send_before_initialize(self):
        """Should refuse to send before initialize()."""
        sender = make_sender(lambda request: httpx.Response(201))
        message = EmailMessage("user@example.com", "Code", "<p>1</p>")

        with pytest.raises(RuntimeError):
            await sender.send(message)


class TestVerifyConnection:
    """Tests for the Brevo health check."""

    @pytest.mark.asyncio
    async def test_ok_account(self):
        """Should return True when the account endpoint answers 200."""
        paths = []

        def handler(request):
            paths.append((request.method, request.url.path))
            return httpx.Response(200, json={"email": "owner@example.com"})

        async with make_sender(handler) as sender:
            assert await sender.verify_connection() is True

        assert paths == [("GET", "/v3/account")]

    @pytest.mark.asyncio
    async def test_bad_credentials(self):
        """Should return False when Brevo rejects the key."""
        async with make_sender(lambda request: httpx.Response(401)) as sender:
            assert await sender.verify_connection() is False

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Should return False instead of raising on network errors."""
        def handler(request):
            raise httpx.ConnectError("connection refused")

        async with make_sender(handler) as sender:
            assert await sender.verify_connection() is False

    @pytest.mark.asyncio
    async def test_before_initialize(self):
        """Should return False when no client exists yet."""
        sender = make_sender(lambda request: httpx.Response(200))
        assert await sender.verify_connection() is False
