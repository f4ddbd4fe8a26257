"""
Key-Value Storage
=================
Storage backends for rate limit records and cooldown markers.

The tracker only needs get/set/remove on string keys, so any session
store can sit behind it.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import redis
import structlog

logger = structlog.get_logger(__name__)


class KeyValueStore(ABC):
    """String key-value store used by the rate tracker."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any previous one."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a value. Removing a missing key is a no-op."""


class InMemoryStore(KeyValueStore):
    """
    Dictionary-backed store.

    Lives as long as the owning session; suitable for a single client or
    for tests.
    """

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class RedisStore(KeyValueStore):
    """
    Redis-backed store.

    Args:
        redis_client: Synchronous redis.Redis client
        prefix: Namespace prepended to every key
        ttl_seconds: Optional expiry applied on every write
    """

    def __init__(
        self,
        redis_client,
        prefix: str = "iris:otp",
        ttl_seconds: Optional[int] = None,
    ):
        self.redis = redis_client
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def get(self, key: str) -> Optional[str]:
        value = self.redis.get(self._key(key))
        if isinstance(value, bytes):
            value = value.decode()
        return value

    def set(self, key: str, value: str) -> None:
        self.redis.set(self._key(key), value, ex=self.ttl_seconds)

    def remove(self, key: str) -> None:
        self.redis.delete(self._key(key))


def load_json(store: KeyValueStore, key: str) -> Any:
    """
    Read and decode a JSON value.

    Returns None when the key is absent or its value cannot be decoded.
    """
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        logger.warning("Discarding corrupt stored value", key=key)
        return None


def dump_json(store: KeyValueStore, key: str, value: Any) -> None:
    """Encode a value as JSON and store it."""
    store.set(key, json.dumps(value, separators=(",", ":")))
