"""Provider signing key management."""

from signet.keys.key_set_cache import SigningKeySetCache

__all__ = ["SigningKeySetCache"]
