"""Sign in with Apple token verification."""

from signet.apple.token_verifier import AppleVerifier

__all__ = ["AppleVerifier"]
