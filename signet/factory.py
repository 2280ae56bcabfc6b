"""Factory for wiring verifiers to a shared key set cache."""

from __future__ import annotations

from typing import Optional

from signet.apple.token_verifier import AppleVerifier
from signet.config import VerifierConfig
from signet.core.key_store import KeyValueStore
from signet.google.token_verifier import GoogleVerifier
from signet.keys.key_set_cache import SigningKeySetCache


class SignetFactory:
    """Creates verifiers that share one key set cache and one configuration.

    Construct the factory once at process start and hand the verifiers it
    creates to the authentication flow. Every Apple verifier from the same
    factory reads through the same SigningKeySetCache, so Apple's keys are
    fetched at most once per TTL window per store.

    Args:
        config: Verifier configuration. Defaults to VerifierConfig().
        store: Backing key-value store. Defaults to an InMemoryKeyValueStore.

    Examples:
        >>> factory = SignetFactory(config=VerifierConfig.from_env())
        >>> apple = factory.create_apple_verifier()
        >>> claims = apple.verify(identity_token)

        >>> google = factory.create_google_verifier()
        >>> payload = google.verify(id_token, client_id="1234.apps.googleusercontent.com")
    """

    def __init__(
        self,
        config: Optional[VerifierConfig] = None,
        store: Optional[KeyValueStore] = None,
    ):
        self.config = config or VerifierConfig()
        if store is None:
            from signet.stores.memory import InMemoryKeyValueStore

            store = InMemoryKeyValueStore()
        self.store = store
        self._key_set_cache: Optional[SigningKeySetCache] = None

    def create_key_set_cache(self) -> SigningKeySetCache:
        """Create or return the cached SigningKeySetCache."""
        if self._key_set_cache is None:
            self._key_set_cache = SigningKeySetCache(
                store=self.store,
                ttl_seconds=self.config.jwks_ttl_seconds,
                timeout=self.config.http_timeout_seconds,
            )
        return self._key_set_cache

    def create_apple_verifier(self) -> AppleVerifier:
        """Create an Apple verifier backed by the shared key set cache."""
        return AppleVerifier(
            key_set_cache=self.create_key_set_cache(),
            keys_url=self.config.apple_keys_url,
            issuer=self.config.apple_issuer,
            audience=self.config.apple_audience,
            clock_skew_seconds=self.config.clock_skew_seconds,
            refresh_on_unknown_key=self.config.refresh_on_unknown_key,
            min_key_refresh_seconds=self.config.min_key_refresh_seconds,
        )

    def create_google_verifier(self) -> GoogleVerifier:
        """Create a Google verifier using this factory's configuration."""
        return GoogleVerifier(config=self.config)


def create_factory(store_type: str = "memory", **kwargs) -> SignetFactory:
    """Create a factory backed by the specified store type.

    Args:
        store_type: The key-value store to cache key sets in.
            Valid values: "memory", "dynamodb"

        **kwargs: Store-specific configuration arguments. Every store type
            accepts ``config`` (VerifierConfig).

            For store_type="dynamodb":
                table_name (str, required): DynamoDB table holding cache entries.
                region (str, required): AWS region of the table.
                endpoint_url (str, optional): Custom endpoint for LocalStack.

    Returns:
        SignetFactory: A configured factory.

    Raises:
        ValueError: If store_type is unknown or required arguments are missing.

    Examples:
        >>> factory = create_factory("memory")
        >>> factory = create_factory(
        ...     "dynamodb",
        ...     table_name="signet-cache-prod",
        ...     region="us-east-1",
        ... )
    """
    config = kwargs.pop("config", None)

    if store_type == "memory":
        if kwargs:
            raise ValueError(
                f"Memory store does not accept arguments, but got: {list(kwargs.keys())}. "
                f"Use: create_factory('memory')"
            )
        return SignetFactory(config=config)
    elif store_type == "dynamodb":
        from signet.stores.dynamodb import DynamoDBKeyValueStore

        missing = [name for name in ("table_name", "region") if name not in kwargs]
        if missing:
            raise ValueError(
                f"Missing required argument(s) {missing} for store_type='dynamodb'. "
                "Example: create_factory('dynamodb', table_name='signet-cache', region='us-east-1')"
            )
        return SignetFactory(config=config, store=DynamoDBKeyValueStore(**kwargs))
    else:
        raise ValueError(
            f"Unknown store type: '{store_type}'. "
            f"Valid types: 'memory', 'dynamodb'. "
            f"Example: create_factory('memory')"
        )
