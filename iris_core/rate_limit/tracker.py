"""
OTP Rate Tracker
================
Per-key attempt counting over a rolling window, plus a minimum delay
between successive issuances.

The tracker is advisory: it gates how often a client asks for codes but
verification never consults it.
"""

import threading
import weakref
from typing import Callable, Optional
import structlog

from ..config import OTPConfig
from ..timeutils import Clock, now_ms as wall_clock_ms, seconds_until
from .models import CooldownStatus, RateLimitRecord, RateLimitStatus
from .storage import InMemoryStore, KeyValueStore, dump_json, load_json

logger = structlog.get_logger(__name__)

RATE_LIMIT_PREFIX = "rate_limit"
LAST_SENT_PREFIX = "last_sent"


class _KeyLock:
    """Re-entrant lock for one key; weakly held so idle keys are dropped."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.RLock()

    def __enter__(self) -> "_KeyLock":
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()


class OTPRateTracker:
    """
    Tracks OTP issuance attempts and resend cooldowns per key.

    Storage errors never block a caller: an unreadable record is treated
    as absent, so the key is reported as not limited and not cooling down.
    Every read-modify-write of a key's stored state runs under that key's
    lock. Locks only live while some call is using them.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        config: Optional[OTPConfig] = None,
        clock: Optional[Clock] = None,
        on_rate_limit: Optional[Callable[[int], None]] = None,
    ):
        """
        Args:
            store: Backing key-value store (default: in-memory)
            config: Attempt, window and cooldown settings
            clock: Millisecond clock, defaults to wall-clock time
            on_rate_limit: Called with the reset time whenever a check
                finds the key limited
        """
        self.store = store if store is not None else InMemoryStore()
        self.config = config or OTPConfig()
        self._clock = clock or wall_clock_ms
        self.on_rate_limit = on_rate_limit
        self._locks: "weakref.WeakValueDictionary[str, _KeyLock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @staticmethod
    def storage_key(prefix: str, key: str) -> str:
        return f"{prefix}_{key}"

    def _lock_for(self, key: str) -> _KeyLock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = _KeyLock()
                self._locks[key] = lock
            return lock

    def _now(self, now_ms: Optional[int]) -> int:
        return self._clock() if now_ms is None else now_ms

    def _load_record(self, key: str) -> Optional[RateLimitRecord]:
        storage_key = self.storage_key(RATE_LIMIT_PREFIX, key)
        data = load_json(self.store, storage_key)
        if data is None:
            return None
        record = RateLimitRecord.from_dict(data)
        if record is None:
            logger.warning("Discarding malformed rate limit record", key=storage_key)
        return record

    def _window_expired(self, record: RateLimitRecord, now: int) -> bool:
        return now - record.first_attempt_time > self.config.reset_window_ms

    def _status(self, key: str, now: int) -> RateLimitStatus:
        # Caller holds the key lock
        record = self._load_record(key)
        max_attempts = self.config.max_attempts

        if record is None:
            return RateLimitStatus(limited=False, attempts_left=max_attempts)

        if self._window_expired(record, now):
            self.store.remove(self.storage_key(RATE_LIMIT_PREFIX, key))
            return RateLimitStatus(limited=False, attempts_left=max_attempts)

        attempts_left = max(0, max_attempts - record.attempts)
        if record.attempts < max_attempts:
            return RateLimitStatus(limited=False, attempts_left=attempts_left)

        reset_at = record.first_attempt_time + self.config.reset_window_ms
        return RateLimitStatus(limited=True, attempts_left=attempts_left, reset_at=reset_at)

    def _notify(self, status: RateLimitStatus) -> RateLimitStatus:
        if status.limited:
            logger.info("OTP rate limit reached", reset_at=status.reset_at)
            if self.on_rate_limit:
                self.on_rate_limit(status.reset_at)
        return status

    def check_rate_limit(self, key: str, now_ms: Optional[int] = None) -> RateLimitStatus:
        """
        Check whether a key has used up its attempts for the current window.

        Args:
            key: Identifying key (e.g. destination email)
            now_ms: Check time in epoch millis (default: now)

        Returns:
            RateLimitStatus; reset_at is set only when limited
        """
        now = self._now(now_ms)
        with self._lock_for(key):
            status = self._status(key, now)
        return self._notify(status)

    def record_attempt(self, key: str, now_ms: Optional[int] = None) -> RateLimitStatus:
        """
        Count one attempt against a key.

        Starts a fresh window when no record exists or the previous window
        has elapsed.

        Returns:
            The rate limit status after recording
        """
        now = self._now(now_ms)

        with self._lock_for(key):
            self._increment(key, now)
            status = self._status(key, now)

        return self._notify(status)

    def _increment(self, key: str, now: int) -> None:
        # Caller holds the key lock
        record = self._load_record(key)

        if record is None or self._window_expired(record, now):
            record = RateLimitRecord.start(now)
        else:
            record.attempts += 1
            record.last_attempt_time = now

        dump_json(self.store, self.storage_key(RATE_LIMIT_PREFIX, key), record.to_dict())

    def check_resend_cooldown(self, key: str, now_ms: Optional[int] = None) -> CooldownStatus:
        """
        Check whether enough time has passed since the last issuance.

        Returns:
            CooldownStatus with whole seconds left, rounded up
        """
        now = self._now(now_ms)
        storage_key = self.storage_key(LAST_SENT_PREFIX, key)
        last_sent = load_json(self.store, storage_key)

        if last_sent is None:
            return CooldownStatus(can_resend=True, seconds_left=0)

        if isinstance(last_sent, bool) or not isinstance(last_sent, int):
            logger.warning("Discarding malformed cooldown marker", key=storage_key)
            return CooldownStatus(can_resend=True, seconds_left=0)

        elapsed = now - last_sent
        if elapsed >= self.config.cooldown_ms:
            return CooldownStatus(can_resend=True, seconds_left=0)

        return CooldownStatus(
            can_resend=False,
            seconds_left=seconds_until(last_sent + self.config.cooldown_ms, now),
        )

    def record_issuance(self, key: str, now_ms: Optional[int] = None) -> RateLimitStatus:
        """
        Mark a code as sent: set the cooldown marker and count the attempt.

        Returns:
            The rate limit status after recording
        """
        now = self._now(now_ms)

        with self._lock_for(key):
            dump_json(self.store, self.storage_key(LAST_SENT_PREFIX, key), now)
            self._increment(key, now)
            status = self._status(key, now)

        return self._notify(status)

    def reset(self, key: str) -> None:
        """Forget all rate limit and cooldown state for a key."""
        with self._lock_for(key):
            self.store.remove(self.storage_key(RATE_LIMIT_PREFIX, key))
            self.store.remove(self.storage_key(LAST_SENT_PREFIX, key))
