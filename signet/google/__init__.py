"""Google ID-token verification."""

from signet.google.token_verifier import GoogleVerifier

__all__ = ["GoogleVerifier"]
