"""Google ID-token verifier.

Delegates signature, issuer, audience and expiry checks to google-auth.
Failures are logged and collapsed into ``None``; callers should deny
authentication on any absent result and use the log for diagnosis.
"""

from __future__ import annotations

import functools
from typing import Any, Dict, Optional

import requests
import structlog
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from signet.config import VerifierConfig
from signet.core.token_verifier import TokenVerifier
from signet.models import FailureReason, VerificationResult, VerifiedClaims

log = structlog.get_logger()


class GoogleVerifier(TokenVerifier):
    """Google ID-token verifier.

    One HTTP session is pooled for the verifier's lifetime; call ``close()``
    when discarding the verifier.

    Args:
        config: Verifier configuration. Certificate validation on the Google
            transport is disabled only when ``config.insecure_transport_enabled``.
            Certificate fetches time out after ``config.http_timeout_seconds``.
    """

    provider = "google"

    def __init__(self, config: Optional[VerifierConfig] = None):
        self.config = config or VerifierConfig()
        self._session = requests.Session()
        if self.config.insecure_transport_enabled:
            self._session.verify = False
            log.warning(
                "google_insecure_transport_enabled",
                environment=self.config.environment,
                debug=self.config.debug,
            )
        self._request = functools.partial(
            google_requests.Request(session=self._session),
            timeout=self.config.http_timeout_seconds,
        )

    def close(self) -> None:
        """Release the pooled HTTP connections."""
        self._session.close()

    def verify(self, id_token: str, client_id: str) -> Optional[Dict[str, Any]]:
        """Verify a Google ID token issued for ``client_id``.

        Args:
            id_token: The raw Google ID token
            client_id: The OAuth client ID the token must be issued for

        Returns:
            The decoded payload on success, None on any failure
        """
        if not id_token or not client_id:
            log.error("google_id_token_verification_failed", error="missing token or client_id")
            return None

        try:
            payload = google_id_token.verify_oauth2_token(
                id_token,
                self._request,
                audience=client_id,
                clock_skew_in_seconds=self.config.clock_skew_seconds,
            )
        except Exception as e:
            log.error("google_id_token_verification_failed", client_id=client_id, error=str(e))
            return None

        if not payload:
            log.error("google_id_token_verification_failed", client_id=client_id, error="empty payload")
            return None

        log.debug("token_verified", provider=self.provider, sub=payload.get("sub"))
        return payload

    def verify_result(
        self, token: str, audience: Optional[str] = None
    ) -> VerificationResult:
        """Verify a Google ID token without raising; ``audience`` is the client ID."""
        payload = self.verify(token, audience or "")
        if payload is None:
            return VerificationResult.failure(
                FailureReason.PROVIDER_REJECTED,
                "Google ID token verification failed",
            )
        return VerificationResult.success(
            VerifiedClaims.from_payload(payload, provider=self.provider)
        )
