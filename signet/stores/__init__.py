"""Key-value store implementations for caching signing keys."""

from signet.stores.dynamodb import DynamoDBKeyValueStore
from signet.stores.memory import InMemoryKeyValueStore

__all__ = [
    "DynamoDBKeyValueStore",
    "InMemoryKeyValueStore",
]
