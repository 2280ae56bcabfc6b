"""Signet exceptions.

All exceptions inherit from SignetError for easy catching.
"""

from __future__ import annotations

from typing import List, Optional


class SignetError(Exception):
    """Base exception for Signet errors."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(SignetError):
    """Raised when verifier configuration is invalid or unsafe."""

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFIGURATION_ERROR")


# ==================== Token Errors ====================


class MalformedTokenError(SignetError):
    """Raised when a token cannot be parsed into header, payload and signature."""

    def __init__(self, message: str = "Malformed token"):
        super().__init__(message=message, code="MALFORMED_TOKEN")


class MissingKeyIdError(SignetError):
    """Raised when the token header carries no key identifier."""

    def __init__(self, message: str = "Token missing kid header"):
        super().__init__(message=message, code="MISSING_KEY_ID")


class UnknownKeyError(SignetError):
    """Raised when the token's key identifier is not in the trusted key set."""

    def __init__(self, kid: Optional[str] = None):
        super().__init__(
            message="Invalid JWT Signature or missing key ID.",
            code="UNKNOWN_KEY",
        )
        self.kid = kid


class TokenValidationError(SignetError):
    """Raised when one or more token constraints are violated.

    All violated constraints are collected before raising, so ``violations``
    lists every failure rather than the first one found.
    """

    def __init__(self, violations: List[str]):
        super().__init__(
            message="JWT validation failed: " + "; ".join(violations),
            code="TOKEN_VALIDATION_FAILED",
        )
        self.violations = list(violations)


# ==================== Key Set Errors ====================


class KeySetFetchError(SignetError):
    """Raised when a provider's signing key set cannot be fetched or parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Failed to fetch signing keys from {url}: {reason}",
            code="KEY_SET_FETCH_FAILED",
        )
        self.url = url
        self.reason = reason


class KeyStoreError(SignetError):
    """Raised when the backing key-value store fails."""

    def __init__(self, message: str, operation: str):
        super().__init__(message=message, code="KEY_STORE_ERROR")
        self.operation = operation
