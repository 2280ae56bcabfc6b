"""Shared pytest fixtures for signet tests."""

import os
import time

import boto3
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm
from moto import mock_aws

from signet.config import APPLE_ISSUER
from signet.keys.key_set_cache import SigningKeySetCache
from signet.stores.memory import InMemoryKeyValueStore


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_jwk(private_key, kid: str) -> dict:
    jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    jwk.update({"kid": kid, "use": "sig", "alg": "RS256"})
    return jwk


@pytest.fixture(scope="session")
def rsa_key():
    """RSA private key used to sign test tokens."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    """A second key that is not published in the test key set."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def apple_jwks(rsa_key):
    """JWKS document shaped like Apple's /auth/keys response."""
    return {"keys": [make_jwk(rsa_key, "apple-kid-1")]}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def key_set_cache(memory_store, clock):
    return SigningKeySetCache(store=memory_store, ttl_seconds=300, clock=clock)


@pytest.fixture
def apple_claims():
    """Valid Apple identity-token payload."""
    now = int(time.time())
    return {
        "iss": APPLE_ISSUER,
        "aud": "com.example.fleet",
        "sub": "001234.abcdef.0987",
        "iat": now,
        "exp": now + 600,
        "email": "driver@example.com",
        "email_verified": "true",
    }


@pytest.fixture
def sign_token(rsa_key):
    """Return a function that signs a payload as an RS256 token."""

    def _sign(payload: dict, kid="apple-kid-1", key=None, algorithm="RS256") -> str:
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(payload, key or rsa_key, algorithm=algorithm, headers=headers)

    return _sign


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for testing."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def region():
    """AWS region for tests."""
    return "us-east-1"


@pytest.fixture
def cache_table(aws_credentials, region):
    """Mock DynamoDB table for cache entries."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name=region)
        client.create_table(
            TableName="signet-cache-test",
            KeySchema=[{"AttributeName": "cache_key", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "cache_key", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield "signet-cache-test"
