"""In-memory key-value store.

Process-wide cache for a single service instance. No network access required.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

import structlog

from signet.core.key_store import KeyValueStore

log = structlog.get_logger()


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe in-memory store with per-entry expiry.

    Entries are replaced whole under a lock, so readers never observe a
    partially written value.

    Example:
        >>> store = InMemoryKeyValueStore()
        >>> store.set("apple-jwks", {"keys": []}, ttl_seconds=300)
        >>> store.get("apple-jwks")
        {'keys': []}
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize the store.

        Args:
            clock: Returns the current time in seconds. Injectable for tests.
        """
        self._clock = clock
        # {key: (value, expires_at)}
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                log.debug("cache_entry_expired", key=key)
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
