"""
OTP Rate Limiting
=================
Rolling-window attempt limits, resend cooldowns and live countdowns.
"""

from .models import RateLimitRecord, RateLimitStatus, CooldownStatus
from .storage import KeyValueStore, InMemoryStore, RedisStore, load_json, dump_json
from .tracker import OTPRateTracker, RATE_LIMIT_PREFIX, LAST_SENT_PREFIX
from .session import OTPSession

__all__ = [
    # Models
    "RateLimitRecord",
    "RateLimitStatus",
    "CooldownStatus",
    # Storage
    "KeyValueStore",
    "InMemoryStore",
    "RedisStore",
    "load_json",
    "dump_json",
    # Tracker
    "OTPRateTracker",
    "RATE_LIMIT_PREFIX",
    "LAST_SENT_PREFIX",
    # Session
    "OTPSession",
]
