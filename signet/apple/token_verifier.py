"""Sign in with Apple identity-token verifier.

This module verifies Apple-issued identity tokens with:
- Apple's published JWKS, cached through SigningKeySetCache
- RS256 signature, issuer and loose time-window validation
- All constraint violations collected into one error
"""

from __future__ import annotations

import json
import re
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog
from jwt.algorithms import RSAAlgorithm
from jwt.utils import base64url_decode

from signet.config import APPLE_ISSUER, APPLE_KEYS_URL
from signet.core.token_verifier import TokenVerifier
from signet.exceptions import (
    KeySetFetchError,
    KeyStoreError,
    MalformedTokenError,
    MissingKeyIdError,
    SignetError,
    TokenValidationError,
    UnknownKeyError,
)
from signet.keys.key_set_cache import SigningKeySetCache
from signet.models import FailureReason, VerificationResult, VerifiedClaims

log = structlog.get_logger()

_SEGMENT = re.compile(r"[A-Za-z0-9_-]*")
_RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)

_FAILURE_REASONS = {
    MalformedTokenError: FailureReason.MALFORMED_TOKEN,
    MissingKeyIdError: FailureReason.MISSING_KEY_ID,
    UnknownKeyError: FailureReason.UNKNOWN_KEY,
    TokenValidationError: FailureReason.VALIDATION_FAILED,
    KeySetFetchError: FailureReason.KEY_SET_FETCH_FAILED,
    KeyStoreError: FailureReason.KEY_SET_FETCH_FAILED,
}


def _parse(token: str) -> Tuple[Dict[str, Any], Dict[str, Any], bytes, bytes]:
    """Split a compact token into header, payload, signing input and signature."""
    if not isinstance(token, str) or token.count(".") != 2:
        raise MalformedTokenError("Token must have three dot-separated segments")

    header_segment, payload_segment, signature_segment = token.split(".")
    if not header_segment or not payload_segment:
        raise MalformedTokenError("Token header and payload must not be empty")
    if not all(_SEGMENT.fullmatch(s) for s in (header_segment, payload_segment, signature_segment)):
        raise MalformedTokenError("Token segments must be base64url encoded")

    try:
        header = json.loads(base64url_decode(header_segment))
        payload = json.loads(base64url_decode(payload_segment))
        signature = base64url_decode(signature_segment)
    except ValueError as e:
        raise MalformedTokenError(f"Token segments are not valid base64url JSON: {e}") from e

    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise MalformedTokenError("Token header and payload must be JSON objects")

    signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
    return header, payload, signing_input, signature


class AppleVerifier(TokenVerifier):
    """Sign in with Apple identity-token verifier.

    Args:
        key_set_cache: Shared cache of Apple's signing keys.
        keys_url: Apple's JWKS endpoint.
        issuer: Required ``iss`` value.
        audience: Optional expected ``aud`` (bundle or service ID).
        clock_skew_seconds: Leeway for exp/iat/nbf checks. Defaults to 60.
        refresh_on_unknown_key: Force one key set refresh before rejecting an
            unknown kid. Defaults to False.
        min_key_refresh_seconds: Minimum age of the cached key set before an
            unknown kid may force a refresh. Defaults to 60.
        clock: Returns the current epoch time. Injectable for tests.
    """

    provider = "apple"

    def __init__(
        self,
        key_set_cache: SigningKeySetCache,
        keys_url: str = APPLE_KEYS_URL,
        issuer: str = APPLE_ISSUER,
        audience: Optional[str] = None,
        clock_skew_seconds: int = 60,
        refresh_on_unknown_key: bool = False,
        min_key_refresh_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.key_set_cache = key_set_cache
        self.keys_url = keys_url
        self.issuer = issuer
        self.audience = audience
        self.clock_skew_seconds = clock_skew_seconds
        self.refresh_on_unknown_key = refresh_on_unknown_key
        self.min_key_refresh_seconds = min_key_refresh_seconds
        self._clock = clock

    def _get_signing_key(self, kid: str) -> Any:
        key_set = self.key_set_cache.get_current_key_set(self.keys_url)
        key = key_set.get(kid)

        if key is None and self.refresh_on_unknown_key:
            log.debug("key_not_found_refreshing", kid=kid, keys_url=self.keys_url)
            key_set = self.key_set_cache.refresh(
                self.keys_url, min_age_seconds=self.min_key_refresh_seconds
            )
            key = key_set.get(kid)

        if key is None:
            log.warning("signing_key_not_found", kid=kid, available_kids=key_set.kids)
            raise UnknownKeyError(kid)

        return key

    def _time_violations(self, payload: Dict[str, Any]) -> List[str]:
        """Loose validity check: absent time claims are not violations."""
        now = self._clock()
        leeway = self.clock_skew_seconds
        violations = []
        times = {}

        for claim in ("iat", "nbf", "exp"):
            value = payload.get(claim)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                violations.append(f"The {claim} claim must be a number")
                continue
            times[claim] = value

        if times.get("iat", now) > now + leeway:
            violations.append("The token was issued in the future")
        if times.get("nbf", now) > now + leeway:
            violations.append("The token cannot be used yet")
        if "exp" in times and times["exp"] <= now - leeway:
            violations.append("The token is expired")

        return violations

    def verify(self, token: str, audience: Optional[str] = None) -> VerifiedClaims:
        """Verify an Apple identity token and return its claims.

        Args:
            token: The raw identity token
            audience: Expected ``aud``; falls back to the verifier's audience

        Returns:
            VerifiedClaims whose raw_claims equal the decoded payload

        Raises:
            MalformedTokenError: If the token cannot be parsed
            MissingKeyIdError: If the header has no kid
            UnknownKeyError: If kid is not in Apple's current key set
            TokenValidationError: If signature, issuer or time window checks fail
            KeySetFetchError: If Apple's keys cannot be fetched
        """
        header, payload, signing_input, signature = _parse(token)

        kid = header.get("kid")
        if not kid or not isinstance(kid, str):
            raise MissingKeyIdError()

        key = self._get_signing_key(kid)

        violations = []
        if header.get("alg") != "RS256":
            violations.append("Token signer mismatch")
        elif not _RS256.verify(signing_input, key, signature):
            violations.append("Token signature mismatch")

        if payload.get("iss") != self.issuer:
            violations.append("The token was not issued by the given issuers")

        violations.extend(self._time_violations(payload))

        expected_audience = audience or self.audience
        if expected_audience:
            aud = payload.get("aud")
            audiences = aud if isinstance(aud, list) else [aud]
            if expected_audience not in audiences:
                violations.append("The token is not allowed to be used by this audience")

        if violations:
            log.warning("apple_token_rejected", kid=kid, violations=violations)
            raise TokenValidationError(violations)

        claims = VerifiedClaims.from_payload(payload, provider=self.provider)
        log.debug("token_verified", provider=self.provider, sub=claims.subject)
        return claims

    def verify_result(
        self, token: str, audience: Optional[str] = None
    ) -> VerificationResult:
        """Verify an Apple identity token without raising."""
        try:
            return VerificationResult.success(self.verify(token, audience))
        except SignetError as e:
            reason = _FAILURE_REASONS.get(type(e), FailureReason.VALIDATION_FAILED)
            log.info("apple_verification_failed", reason=reason.value, error=e.message)
            return VerificationResult.failure(reason, e.message)

    def get_unverified_claims(self, token: str) -> VerifiedClaims:
        # jwt.decode is lenient about padding; keep parsing identical to verify()
        _, payload, _, _ = _parse(token)
        return VerifiedClaims.from_payload(payload, provider=self.provider)
