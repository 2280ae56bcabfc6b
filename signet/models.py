"""Verification models - provider-agnostic data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import structlog
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import InvalidKeyError

from signet.exceptions import KeySetFetchError

log = structlog.get_logger()


class FailureReason(str, Enum):
    """Why a verification attempt was rejected."""

    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    MISSING_KEY_ID = "MISSING_KEY_ID"
    UNKNOWN_KEY = "UNKNOWN_KEY"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    KEY_SET_FETCH_FAILED = "KEY_SET_FETCH_FAILED"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"


@dataclass
class VerifiedClaims:
    """Claims extracted from a verified identity token."""

    issuer: Optional[str]
    subject: Optional[str]
    audience: Optional[Any] = None  # str or list, as issued
    expires_at: Optional[int] = None
    issued_at: Optional[int] = None
    not_before: Optional[int] = None
    email: Optional[str] = None
    email_verified: bool = False
    provider: Optional[str] = None
    raw_claims: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], provider: Optional[str] = None
    ) -> "VerifiedClaims":
        """Build claims from a decoded token payload."""
        # Apple sends email_verified as the string "true"
        email_verified = payload.get("email_verified", False)
        if isinstance(email_verified, str):
            email_verified = email_verified.lower() == "true"

        return cls(
            issuer=payload.get("iss"),
            subject=payload.get("sub"),
            audience=payload.get("aud"),
            expires_at=payload.get("exp"),
            issued_at=payload.get("iat"),
            not_before=payload.get("nbf"),
            email=payload.get("email"),
            email_verified=bool(email_verified),
            provider=provider,
            raw_claims=dict(payload),
        )


@dataclass
class VerificationResult:
    """Outcome of a verification attempt: claims on success, a reason otherwise."""

    claims: Optional[VerifiedClaims] = None
    reason: Optional[FailureReason] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None and self.reason is None

    @classmethod
    def success(cls, claims: VerifiedClaims) -> "VerificationResult":
        return cls(claims=claims)

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> "VerificationResult":
        return cls(reason=reason, message=message)


@dataclass
class SigningKeySet:
    """Public signing keys published by a provider, indexed by key ID.

    A key set is only trusted for a bounded window after ``fetched_at``;
    freshness is enforced by the cache that hands it out.
    """

    keys: Dict[str, Any]
    fetched_at: float

    def __contains__(self, kid: object) -> bool:
        return kid in self.keys

    def __len__(self) -> int:
        return len(self.keys)

    def get(self, kid: str) -> Any:
        return self.keys.get(kid)

    @property
    def kids(self) -> List[str]:
        return list(self.keys.keys())

    @classmethod
    def from_jwks(
        cls,
        document: Any,
        fetched_at: float,
        source: str = "unknown",
    ) -> "SigningKeySet":
        """Parse a JSON Web Key Set document.

        Keys without a ``kid`` or with a non-RSA key type are skipped.

        Raises:
            KeySetFetchError: If the document is not a JWKS object or an RSA
                key cannot be loaded.
        """
        if not isinstance(document, dict) or not isinstance(document.get("keys"), list):
            raise KeySetFetchError(source, "document is not a JSON Web Key Set")

        keys: Dict[str, Any] = {}
        for jwk in document["keys"]:
            if not isinstance(jwk, dict):
                log.warning("jwk_skipped", source=source, reason="not an object")
                continue
            kid = jwk.get("kid")
            if not kid:
                log.warning("jwk_skipped", source=source, reason="missing kid")
                continue
            if jwk.get("kty") != "RSA":
                log.warning("jwk_skipped", source=source, kid=kid, kty=jwk.get("kty"))
                continue
            try:
                keys[kid] = RSAAlgorithm.from_jwk(jwk)
            except (InvalidKeyError, KeyError, ValueError) as e:
                raise KeySetFetchError(source, f"invalid key {kid}: {e}") from e

        return cls(keys=keys, fetched_at=fetched_at)
