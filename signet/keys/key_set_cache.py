"""Signing key set cache.

Fetches a provider's published JSON Web Key Set and memoizes it in a
KeyValueStore for a bounded freshness window.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict

import requests
import structlog

from signet.core.key_store import KeyValueStore
from signet.exceptions import KeySetFetchError
from signet.models import SigningKeySet

log = structlog.get_logger()


class SigningKeySetCache:
    """Shared, TTL-bounded cache of provider signing keys.

    Concurrent misses for the same URL are coalesced: one caller fetches
    while the others wait on a per-URL lock and then read the stored entry.
    Failed fetches store nothing and are not retried. Parsed key sets are
    kept in-process per URL and reused while the stored entry is unchanged.

    Args:
        store: Backing key-value store (in-memory or distributed).
        ttl_seconds: How long a fetched key set is trusted. Defaults to 5 minutes.
        timeout: HTTP timeout in seconds for the JWKS request.
        clock: Returns the current time in seconds. Injectable for tests.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = 300,
        timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self._clock = clock
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._parsed: Dict[str, SigningKeySet] = {}

    @staticmethod
    def cache_key(keys_url: str) -> str:
        return f"jwks:{keys_url}"

    def _lock_for(self, keys_url: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(keys_url)
            if lock is None:
                lock = self._locks[keys_url] = threading.RLock()
            return lock

    def _fetch(self, keys_url: str) -> Dict[str, Any]:
        """Fetch and validate a JWKS document, returning the entry to cache."""
        try:
            resp = requests.get(keys_url, timeout=self.timeout)
            resp.raise_for_status()
            document = resp.json()
        except requests.RequestException as e:
            log.error("jwks_fetch_failed", keys_url=keys_url, error=str(e))
            raise KeySetFetchError(keys_url, str(e)) from e
        except ValueError as e:
            log.error("jwks_invalid_json", keys_url=keys_url, error=str(e))
            raise KeySetFetchError(keys_url, f"invalid JSON: {e}") from e

        fetched_at = self._clock()
        # Parse once up front so a bad document is never cached
        key_set = SigningKeySet.from_jwks(document, fetched_at, source=keys_url)
        with self._locks_guard:
            self._parsed[keys_url] = key_set

        log.info("jwks_fetched", keys_url=keys_url, key_count=len(key_set))
        return {"fetched_at": fetched_at, "jwks": document}

    def get_current_key_set(self, keys_url: str) -> SigningKeySet:
        """Return the trusted key set for ``keys_url``, fetching it if stale.

        Raises:
            KeySetFetchError: If the key set has to be fetched and the fetch fails
        """
        key = self.cache_key(keys_url)
        entry = self.store.get(key)

        if entry is None:
            with self._lock_for(keys_url):
                entry = self.store.remember(
                    key, self.ttl_seconds, lambda: self._fetch(keys_url)
                )
        else:
            log.debug("jwks_cache_hit", keys_url=keys_url)

        with self._locks_guard:
            key_set = self._parsed.get(keys_url)
        if key_set is not None and key_set.fetched_at == entry["fetched_at"]:
            return key_set

        key_set = SigningKeySet.from_jwks(entry["jwks"], entry["fetched_at"], source=keys_url)
        with self._locks_guard:
            self._parsed[keys_url] = key_set
        return key_set

    def age(self, key_set: SigningKeySet) -> float:
        """Seconds since ``key_set`` was fetched, on this cache's clock."""
        return self._clock() - key_set.fetched_at

    def refresh(self, keys_url: str, min_age_seconds: float = 0) -> SigningKeySet:
        """Re-fetch the key set unless the cached one is younger than ``min_age_seconds``.

        Callers racing on the same URL are serialized, so a burst of refresh
        requests costs at most one fetch per ``min_age_seconds``.

        Raises:
            KeySetFetchError: If the re-fetch fails
        """
        with self._lock_for(keys_url):
            key_set = self.get_current_key_set(keys_url)
            age = self.age(key_set)
            if age < min_age_seconds:
                log.debug("jwks_refresh_throttled", keys_url=keys_url, age=age)
                return key_set

            self.invalidate(keys_url)
            return self.get_current_key_set(keys_url)

    def invalidate(self, keys_url: str) -> None:
        """Drop the cached key set so the next read re-fetches it."""
        self.store.delete(self.cache_key(keys_url))
        with self._locks_guard:
            self._parsed.pop(keys_url, None)
        log.debug("jwks_cache_invalidated", keys_url=keys_url)
