"""Core abstractions for Signet token verification."""

from signet.core.key_store import KeyValueStore
from signet.core.token_verifier import TokenVerifier

__all__ = [
    "KeyValueStore",
    "TokenVerifier",
]
