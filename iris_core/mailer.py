"""
Iris Mail Service
=================
Composes the rate tracker, OTP service and an email sender into the
request / verify flow.

Usage:
    settings = IrisSettings.from_env()
    async with IrisMailService.from_settings(settings) as iris:
        result = await iris.request_otp("user@example.com")
        ...
        verification = iris.verify_otp(code, result.token)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import structlog

from . import metrics
from .config import IrisSettings, OTPConfig
from .email import BaseEmailSender, BrevoEmailSender, EmailMessage, render_otp_email
from .log import mask_recipient
from .otp import OTPService, VerificationResult
from .rate_limit import InMemoryStore, KeyValueStore, OTPRateTracker, RedisStore
from .timeutils import Clock, now_ms as wall_clock_ms

logger = structlog.get_logger(__name__)


class OTPRequestStatus(str, Enum):
    """Outcome of an OTP request."""
    SENT = "sent"
    RATE_LIMITED = "rate_limited"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class OTPRequestResult:
    """What the caller gets back from request_otp()."""
    status: OTPRequestStatus
    token: Optional[str] = None
    message_id: Optional[str] = None
    attempts_left: int = 0
    seconds_left: int = 0
    reset_at: Optional[int] = None

    @property
    def sent(self) -> bool:
        return self.status is OTPRequestStatus.SENT


class IrisMailService:
    """Request and verify email OTPs."""

    def __init__(
        self,
        secret_key: str,
        sender: BaseEmailSender,
        config: Optional[OTPConfig] = None,
        store: Optional[KeyValueStore] = None,
        app_name: str = "Iris",
        clock: Optional[Clock] = None,
        on_rate_limit: Optional[Callable[[int], None]] = None,
    ):
        self.config = config or OTPConfig()
        self._clock = clock or wall_clock_ms
        self.otp = OTPService(secret_key, config=self.config, clock=self._clock)
        self.tracker = OTPRateTracker(
            store=store,
            config=self.config,
            clock=self._clock,
            on_rate_limit=on_rate_limit,
        )
        self.sender = sender
        self.app_name = app_name

    @classmethod
    def from_settings(
        cls,
        settings: IrisSettings,
        sender: Optional[BaseEmailSender] = None,
        store: Optional[KeyValueStore] = None,
        on_rate_limit: Optional[Callable[[int], None]] = None,
    ) -> "IrisMailService":
        """
        Build the service from settings.

        Uses a Brevo sender unless one is given, and a Redis store when
        IRIS_REDIS_URL is set.
        """
        if sender is None:
            sender = BrevoEmailSender(
                api_key=settings.brevo_api_key,
                sender_email=settings.email_from,
                sender_name=settings.email_from_name,
            )
        if store is None:
            store = (
                RedisStore.from_url(settings.redis_url)
                if settings.redis_url
                else InMemoryStore()
            )
        return cls(
            settings.secret_key,
            sender,
            config=settings.otp,
            store=store,
            app_name=settings.app_name,
            on_rate_limit=on_rate_limit,
        )

    async def __aenter__(self) -> "IrisMailService":
        await self.sender.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.sender.close()

    async def request_otp(self, recipient: str, now_ms: Optional[int] = None) -> OTPRequestResult:
        """
        Issue a code and email it, unless the recipient is limited.

        Issuance is only recorded against the recipient once the email
        transport accepts the message.

        Args:
            recipient: Destination email address, also the rate limit key
            now_ms: Request time in epoch millis (default: now)

        Returns:
            OTPRequestResult; on SENT it carries the token to keep

        Raises:
            EmailDeliveryError: If the email transport fails
        """
        now = self._clock() if now_ms is None else now_ms
        masked = mask_recipient(recipient)

        limit = self.tracker.check_rate_limit(recipient, now)
        if limit.limited:
            metrics.record_rate_limited("attempts")
            logger.warning("OTP request rate limited", recipient=masked, reset_at=limit.reset_at)
            return OTPRequestResult(
                status=OTPRequestStatus.RATE_LIMITED,
                attempts_left=0,
                reset_at=limit.reset_at,
            )

        cooldown = self.tracker.check_resend_cooldown(recipient, now)
        if not cooldown.can_resend:
            metrics.record_rate_limited("cooldown")
            logger.info(
                "OTP request in cooldown",
                recipient=masked,
                seconds_left=cooldown.seconds_left,
            )
            return OTPRequestResult(
                status=OTPRequestStatus.COOLDOWN,
                attempts_left=limit.attempts_left,
                seconds_left=cooldown.seconds_left,
            )

        issued = await self.otp.aissue(now_ms=now)
        subject, body = render_otp_email(issued.code, self.config.expiry_minutes, self.app_name)
        result = await self.sender.send(
            EmailMessage(recipient=recipient, subject=subject, body_html=body)
        )

        status = self.tracker.record_issuance(recipient, now)
        logger.info("OTP sent", recipient=masked, attempts_left=status.attempts_left)

        return OTPRequestResult(
            status=OTPRequestStatus.SENT,
            token=issued.token,
            message_id=result.message_id,
            attempts_left=status.attempts_left,
            seconds_left=self.config.resend_cooldown_seconds,
        )

    def verify_otp(self, code: str, token: str, now_ms: Optional[int] = None) -> VerificationResult:
        """Verify a submitted code against the token from request_otp()."""
        return self.otp.verify(code, token, now_ms=now_ms)
