"""Abstract token verifier interface.

This module defines the interface for identity-token verification.
Each provider keeps its own ``verify`` contract; ``verify_result`` gives
callers one uniform, non-raising entry point for every provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import jwt

from signet.exceptions import MalformedTokenError
from signet.models import VerificationResult, VerifiedClaims


class TokenVerifier(ABC):
    """Abstract interface for identity-token verification.

    Implementations:
        - AppleVerifier: Sign in with Apple identity tokens
        - GoogleVerifier: Google ID tokens
    """

    provider: str = "unknown"

    @abstractmethod
    def verify_result(
        self, token: str, audience: Optional[str] = None
    ) -> VerificationResult:
        """Verify a token and return a typed result.

        Never raises for verification failures; the failure reason is carried
        in the result instead.

        Args:
            token: The raw identity token (without 'Bearer ' prefix)
            audience: Expected audience (client ID), where the provider needs one

        Returns:
            VerificationResult with claims on success, or a FailureReason
        """

    def get_unverified_claims(self, token: str) -> VerifiedClaims:
        """Extract claims from a token WITHOUT verifying the signature.

        WARNING: Only use this for debugging or logging purposes.
        Never trust unverified claims for authentication decisions.

        Raises:
            MalformedTokenError: If the token cannot be decoded
        """
        try:
            claims = jwt.decode(
                token,
                options={"verify_signature": False, "verify_aud": False},
            )
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Failed to decode token: {e}") from e
        return VerifiedClaims.from_payload(claims, provider=self.provider)
