"""
OTP Countdown Session
=====================
Live countdown state for one key, refreshed by a scoped once-per-second
ticker.

The countdowns are display state only. Expiry is decided by
OTPService.verify from the token's timestamp.
"""

import asyncio
from typing import Optional
import structlog

from ..timeutils import format_time
from .models import CooldownStatus, RateLimitStatus
from .tracker import OTPRateTracker

logger = structlog.get_logger(__name__)


class OTPSession:
    """
    Countdown and rate limit state for a single key.

    Usage:
        async with OTPSession(tracker, "user@example.com") as session:
            session.record_sent()
            ...  # read session.otp_time_left / session.resend_time_left
    """

    def __init__(
        self,
        tracker: OTPRateTracker,
        key: str,
        tick_interval: float = 1.0,
    ):
        self.tracker = tracker
        self.key = key
        self.tick_interval = tick_interval

        config = tracker.config
        self.otp_time_left: int = config.expiry_seconds
        self.resend_time_left: int = 0
        self.attempts_left: int = config.max_attempts
        self.is_rate_limited: bool = False
        self.rate_limit_reset_at: Optional[int] = None

        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _apply_rate_limit(self, status: RateLimitStatus) -> RateLimitStatus:
        self.attempts_left = status.attempts_left
        self.is_rate_limited = status.limited
        self.rate_limit_reset_at = status.reset_at
        return status

    def check_rate_limit(self, now_ms: Optional[int] = None) -> RateLimitStatus:
        return self._apply_rate_limit(self.tracker.check_rate_limit(self.key, now_ms))

    def check_resend_cooldown(self, now_ms: Optional[int] = None) -> CooldownStatus:
        status = self.tracker.check_resend_cooldown(self.key, now_ms)
        self.resend_time_left = status.seconds_left
        return status

    def refresh(self, now_ms: Optional[int] = None) -> None:
        """Re-read rate limit and cooldown state from the tracker."""
        self.check_rate_limit(now_ms)
        self.check_resend_cooldown(now_ms)

    def record_sent(self, now_ms: Optional[int] = None) -> RateLimitStatus:
        """Record an issuance and restart both countdowns."""
        status = self._apply_rate_limit(self.tracker.record_issuance(self.key, now_ms))
        self.otp_time_left = self.tracker.config.expiry_seconds
        self.resend_time_left = self.tracker.config.resend_cooldown_seconds
        return status

    def tick(self, now_ms: Optional[int] = None) -> None:
        """Advance the expiry countdown by one second and re-check the cooldown."""
        self.otp_time_left = max(0, self.otp_time_left - 1)
        self.check_resend_cooldown(now_ms)

    @property
    def otp_time_left_display(self) -> str:
        return format_time(self.otp_time_left)

    @property
    def resend_time_left_display(self) -> str:
        return format_time(self.resend_time_left)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            try:
                self.tick()
            except Exception:
                logger.exception("OTP session tick failed")

    def start(self) -> None:
        """
        Start the ticker on the running event loop.

        Refreshes state immediately, then ticks every tick_interval
        seconds until stop() is called.
        """
        if self.is_running:
            return
        self.refresh()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("OTP session ticker started", interval=self.tick_interval)

    async def stop(self) -> None:
        """Cancel the ticker and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("OTP session ticker stopped")

    async def __aenter__(self) -> "OTPSession":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
