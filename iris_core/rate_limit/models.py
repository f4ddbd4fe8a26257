"""
Rate Limit Models
=================
Stored records and check results for the OTP rate tracker.
"""

from typing import Any, Optional
from dataclasses import dataclass


@dataclass
class RateLimitRecord:
    """Attempt counter for one key within a rolling window."""
    attempts: int
    first_attempt_time: int  # Epoch millis
    last_attempt_time: int  # Epoch millis

    def to_dict(self) -> dict:
        return {
            "attempts": self.attempts,
            "firstAttemptTime": self.first_attempt_time,
            "lastAttemptTime": self.last_attempt_time,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["RateLimitRecord"]:
        """Parse a stored record, returning None for anything malformed."""
        if not isinstance(data, dict):
            return None
        try:
            attempts = data["attempts"]
            first = data["firstAttemptTime"]
            last = data.get("lastAttemptTime", first)
        except KeyError:
            return None
        values = (attempts, first, last)
        if any(isinstance(v, bool) or not isinstance(v, int) for v in values):
            return None
        return cls(attempts=attempts, first_attempt_time=first, last_attempt_time=last)

    @classmethod
    def start(cls, now: int) -> "RateLimitRecord":
        return cls(attempts=1, first_attempt_time=now, last_attempt_time=now)


@dataclass(frozen=True)
class RateLimitStatus:
    """Result of a rate limit check."""
    limited: bool
    attempts_left: int
    reset_at: Optional[int] = None  # Epoch millis, only set when limited


@dataclass(frozen=True)
class CooldownStatus:
    """Result of a resend cooldown check."""
    can_resend: bool
    seconds_left: int
