"""Abstract key-value store interface.

Verifiers never reach for a global cache; a store is constructed once at
process start and injected. Implementations can be in-process or shared
across processes (DynamoDB).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class KeyValueStore(ABC):
    """Abstract TTL key-value store.

    Values must be JSON-serialisable so that distributed implementations can
    persist them.

    Implementations:
        - InMemoryKeyValueStore: process-wide dict
        - DynamoDBKeyValueStore: shared DynamoDB table
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value that expires ``ttl_seconds`` from now.

        Raises:
            KeyStoreError: On backend errors
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a value. Missing keys are ignored."""

    def remember(self, key: str, ttl_seconds: int, compute: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing and storing it on a miss.

        If ``compute`` raises, nothing is stored and the error propagates.
        """
        value = self.get(key)
        if value is not None:
            return value

        value = compute()
        self.set(key, value, ttl_seconds)
        return value
