"""
Redis Repository Base Class

Provides JSON persistence, Lua execution and connection management shared by
the Redis-backed repositories.
"""

import json
import logging
from typing import Any, Dict, Iterator, Optional

import redis
from redis.exceptions import RedisError

from burnbox.domain.errors import MetadataStoreError

logger = logging.getLogger(__name__)


class RedisRepository:
    """
    Base Redis repository with key prefixing and JSON helpers.

    Connection and protocol failures surface as MetadataStoreError.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def _strip_prefix(self, redis_key) -> str:
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode('utf-8')
        if self.key_prefix:
            return redis_key[len(self.key_prefix) + 1:]
        return redis_key

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Args:
            key: Redis key

        Returns:
            Dictionary if found, None if the key does not exist
        """
        try:
            data = self.redis.get(self._make_key(key))
        except RedisError as e:
            logger.error(f"Error getting JSON data for key {key}: {e}")
            raise MetadataStoreError(f"Failed to read {key}", e)

        if data is None:
            return None
        return self.decode_json(data)

    @staticmethod
    def decode_json(data) -> Optional[Dict[str, Any]]:
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise MetadataStoreError("Corrupt JSON record", e)

    def eval(self, script: str, keys: list, args: list):
        """
        Run a Lua script atomically.

        Args:
            script: Lua source
            keys: Unprefixed key names passed as KEYS
            args: Values passed as ARGV
        """
        redis_keys = [self._make_key(key) for key in keys]
        try:
            return self.redis.eval(script, len(redis_keys), *redis_keys, *args)
        except RedisError as e:
            logger.error(f"Error running Lua script on {keys}: {e}")
            raise MetadataStoreError(f"Atomic operation failed on {keys}", e)

    def delete(self, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            True if key was deleted, False if it did not exist
        """
        try:
            return self.redis.delete(self._make_key(key)) > 0
        except RedisError as e:
            logger.error(f"Error deleting key {key}: {e}")
            raise MetadataStoreError(f"Failed to delete {key}", e)

    def scan_keys(self, pattern: str) -> Iterator[str]:
        """
        Iterate keys matching a pattern.

        Args:
            pattern: Redis key pattern (supports wildcards)

        Yields:
            Matching keys without prefix
        """
        try:
            for redis_key in self.redis.scan_iter(match=self._make_key(pattern), count=500):
                yield self._strip_prefix(redis_key)
        except RedisError as e:
            logger.error(f"Error scanning keys by pattern {pattern}: {e}")
            raise MetadataStoreError(f"Failed to scan {pattern}", e)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a pattern. Returns the number removed."""
        removed = 0
        batch = []
        for key in self.scan_keys(pattern):
            batch.append(self._make_key(key))
            if len(batch) >= 500:
                removed += self._delete_batch(batch)
                batch = []
        if batch:
            removed += self._delete_batch(batch)
        return removed

    def _delete_batch(self, redis_keys: list) -> int:
        try:
            return self.redis.delete(*redis_keys)
        except RedisError as e:
            raise MetadataStoreError("Failed to delete keys", e)


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 password: Optional[str] = None, max_connections: int = 20,
                 socket_timeout: Optional[float] = 5.0,
                 decode_responses: bool = False):
        self.db = db
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisError:
            return False
