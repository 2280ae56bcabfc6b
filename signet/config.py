"""Verifier configuration.

Settings can be passed explicitly or read from ``SIGNET_*`` environment
variables via :meth:`VerifierConfig.from_env`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from signet.exceptions import ConfigurationError

APPLE_ISSUER = "https://appleid.apple.com"
APPLE_KEYS_URL = APPLE_ISSUER + "/auth/keys"

PRODUCTION = "production"
DEVELOPMENT = "development"

PRODUCTION_ENVIRONMENTS = frozenset({PRODUCTION, "prod", "prd", "live"})
# The only environments where certificate validation may be switched off
INSECURE_TRANSPORT_ENVIRONMENTS = frozenset({DEVELOPMENT, "dev", "local"})

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_number(environ: Mapping[str, str], name: str, default, cast):
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


@dataclass(frozen=True)
class VerifierConfig:
    """Configuration shared by the Apple and Google verifiers.

    Args:
        environment: Deployment environment name ("production", "development", ...).
            "prod", "prd" and "live" are treated as production too.
        debug: Debug mode flag. Informational only; it never enables the
            insecure transport on its own.
        allow_insecure_transport: Explicit opt-in for disabling TLS certificate
            validation on the Google transport. Only takes effect in
            "development", "dev" or "local", and is rejected outright in production.
        jwks_ttl_seconds: How long a fetched key set is trusted. Defaults to 5 minutes.
        clock_skew_seconds: Leeway for exp/iat/nbf checks. Defaults to 60.
        http_timeout_seconds: Timeout for key set fetches and Google certificate fetches.
        apple_keys_url: Apple's published JWKS endpoint.
        apple_issuer: Required issuer for Apple tokens.
        apple_audience: Optional expected audience (bundle/service ID) for Apple tokens.
        refresh_on_unknown_key: Force one key set refresh before rejecting an
            unknown kid. Off by default.
        min_key_refresh_seconds: Minimum key set age before an unknown kid may
            force a refresh. Defaults to 60.
    """

    environment: str = PRODUCTION
    debug: bool = False
    allow_insecure_transport: bool = False
    jwks_ttl_seconds: int = 300
    clock_skew_seconds: int = 60
    http_timeout_seconds: float = 5.0
    apple_keys_url: str = APPLE_KEYS_URL
    apple_issuer: str = APPLE_ISSUER
    apple_audience: Optional[str] = None
    refresh_on_unknown_key: bool = False
    min_key_refresh_seconds: int = 60

    def __post_init__(self):
        if self.jwks_ttl_seconds < 0:
            raise ConfigurationError("jwks_ttl_seconds must not be negative")
        if self.clock_skew_seconds < 0:
            raise ConfigurationError("clock_skew_seconds must not be negative")
        if self.http_timeout_seconds <= 0:
            raise ConfigurationError("http_timeout_seconds must be positive")
        if self.min_key_refresh_seconds < 0:
            raise ConfigurationError("min_key_refresh_seconds must not be negative")
        if self.allow_insecure_transport and self.is_production:
            raise ConfigurationError(
                "allow_insecure_transport cannot be enabled in production"
            )

    @property
    def is_production(self) -> bool:
        return self._normalized_environment in PRODUCTION_ENVIRONMENTS

    @property
    def _normalized_environment(self) -> str:
        return self.environment.strip().lower()

    @property
    def insecure_transport_enabled(self) -> bool:
        """Whether TLS certificate validation may be disabled for provider calls.

        Requires the explicit opt-in flag and an allow-listed local
        environment. Unrecognised environment names count as non-local.
        """
        if not self.allow_insecure_transport or self.is_production:
            return False
        return self._normalized_environment in INSECURE_TRANSPORT_ENVIRONMENTS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VerifierConfig":
        """Build a config from ``SIGNET_*`` environment variables.

        Example:
            >>> import os
            >>> os.environ["SIGNET_ENV"] = "development"
            >>> config = VerifierConfig.from_env()
        """
        env = os.environ if environ is None else environ
        return cls(
            environment=env.get("SIGNET_ENV", PRODUCTION),
            debug=_env_bool(env, "SIGNET_DEBUG"),
            allow_insecure_transport=_env_bool(env, "SIGNET_ALLOW_INSECURE_TRANSPORT"),
            jwks_ttl_seconds=_env_number(env, "SIGNET_JWKS_TTL_SECONDS", 300, int),
            clock_skew_seconds=_env_number(env, "SIGNET_CLOCK_SKEW_SECONDS", 60, int),
            http_timeout_seconds=_env_number(env, "SIGNET_HTTP_TIMEOUT_SECONDS", 5.0, float),
            apple_audience=env.get("SIGNET_APPLE_AUDIENCE") or None,
            refresh_on_unknown_key=_env_bool(env, "SIGNET_REFRESH_ON_UNKNOWN_KEY"),
            min_key_refresh_seconds=_env_number(env, "SIGNET_MIN_KEY_REFRESH_SECONDS", 60, int),
        )
