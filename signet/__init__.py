"""Signet - third-party identity-token verification.

Signet verifies identity tokens issued by Apple and Google for an
authentication flow.

Features:
- Sign in with Apple token verification (RS256, issuer, loose time window)
- Google ID-token verification via google-auth
- Signing key set caching with a bounded TTL and pluggable stores
- One typed, non-raising result shape across providers
"""

from signet.apple import AppleVerifier
from signet.config import VerifierConfig
from signet.factory import SignetFactory, create_factory
from signet.core.key_store import KeyValueStore
from signet.core.token_verifier import TokenVerifier
from signet.exceptions import (
    ConfigurationError,
    KeySetFetchError,
    KeyStoreError,
    MalformedTokenError,
    MissingKeyIdError,
    SignetError,
    TokenValidationError,
    UnknownKeyError,
)
from signet.google import GoogleVerifier
from signet.keys import SigningKeySetCache
from signet.models import (
    FailureReason,
    SigningKeySet,
    VerificationResult,
    VerifiedClaims,
)
from signet.stores import DynamoDBKeyValueStore, InMemoryKeyValueStore

__version__ = "0.1.0"

__all__ = [
    # Core interfaces
    "KeyValueStore",
    "TokenVerifier",
    # Factory (recommended entry point)
    "create_factory",
    "SignetFactory",
    # Configuration
    "VerifierConfig",
    # Models
    "FailureReason",
    "SigningKeySet",
    "VerificationResult",
    "VerifiedClaims",
    # Exceptions
    "SignetError",
    "ConfigurationError",
    "MalformedTokenError",
    "MissingKeyIdError",
    "UnknownKeyError",
    "TokenValidationError",
    "KeySetFetchError",
    "KeyStoreError",
    # Verifiers
    "AppleVerifier",
    "GoogleVerifier",
    # Key sets and stores
    "SigningKeySetCache",
    "DynamoDBKeyValueStore",
    "InMemoryKeyValueStore",
]
