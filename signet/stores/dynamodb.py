"""DynamoDB-backed key-value store for sharing cached key sets across processes."""

from __future__ import annotations

import json
import math
import time
from typing import Any, Callable, Optional

import boto3
import structlog
from botocore.exceptions import ClientError

from signet.core.key_store import KeyValueStore
from signet.exceptions import KeyStoreError

log = structlog.get_logger()


class DynamoDBKeyValueStore(KeyValueStore):
    """
    Stores cache entries in a DynamoDB table.

    Expects table schema:
    - PK: cache_key (S)
    - Attributes: value (S, JSON-encoded), expires_at (N, epoch seconds)

    Enable DynamoDB TTL on ``expires_at`` to have the table purge old items.
    TTL deletion is lazy, so expired items are also filtered on read.

    Example:
        store = DynamoDBKeyValueStore(
            table_name="signet-cache-prod",
            region="us-east-1"
        )
        store.set("jwks:https://appleid.apple.com/auth/keys", document, 300)
    """

    def __init__(
        self,
        table_name: str,
        region: str,
        endpoint_url: Optional[str] = None,  # For LocalStack testing
        clock: Callable[[], float] = time.time,
    ):
        """Initialize DynamoDB key-value store.

        Args:
            table_name: Name of the DynamoDB table holding cache entries
            region: AWS region where the table is located
            endpoint_url: Optional endpoint URL for LocalStack/testing
            clock: Returns the current epoch time in seconds
        """
        self._table_name = table_name
        self._region = region
        self._clock = clock
        self._dynamodb = boto3.client(
            'dynamodb',
            region_name=region,
            endpoint_url=endpoint_url
        )
        log.info("Initialized DynamoDB key-value store", table_name=table_name, region=region)

    def get(self, key: str) -> Optional[Any]:
        try:
            response = self._dynamodb.get_item(
                TableName=self._table_name,
                Key={'cache_key': {'S': key}},
                ConsistentRead=True,
            )
        except ClientError as e:
            log.error("DynamoDB get failed", table_name=self._table_name, key=key, error=str(e))
            raise KeyStoreError(f"Failed to read cache entry {key}: {e}", "get") from e

        item = response.get('Item')
        if not item:
            return None

        try:
            expires_at = float(item['expires_at']['N'])
            if expires_at <= self._clock():
                log.debug("Cache entry expired", key=key)
                return None
            return json.loads(item['value']['S'])
        except (KeyError, ValueError) as e:
            log.warning("Discarding malformed cache entry", key=key, error=str(e))
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        expires_at = math.ceil(self._clock() + ttl_seconds)
        try:
            self._dynamodb.put_item(
                TableName=self._table_name,
                Item={
                    'cache_key': {'S': key},
                    'value': {'S': json.dumps(value)},
                    'expires_at': {'N': str(expires_at)},
                },
            )
        except ClientError as e:
            log.error("DynamoDB put failed", table_name=self._table_name, key=key, error=str(e))
            raise KeyStoreError(f"Failed to write cache entry {key}: {e}", "set") from e

    def delete(self, key: str) -> None:
        try:
            self._dynamodb.delete_item(
                TableName=self._table_name,
                Key={'cache_key': {'S': key}},
            )
        except ClientError as e:
            log.error("DynamoDB delete failed", table_name=self._table_name, key=key, error=str(e))
            raise KeyStoreError(f"Failed to delete cache entry {key}: {e}", "delete") from e
