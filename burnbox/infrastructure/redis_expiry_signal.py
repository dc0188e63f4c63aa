"""
Redis Expiry Signal Implementation

Expiry entries are plain Redis keys carrying a TTL. Redis publishes an
"expired" keyspace event when one lapses, which the notification source
turns back into object identifiers.
"""

import logging
import threading
from typing import Iterator, Optional

import redis
from redis.exceptions import RedisError

from burnbox.domain.errors import ExpirySignalError
from burnbox.domain.objects.expiry_signal import IExpiryNotificationSource, IExpirySignal

logger = logging.getLogger(__name__)

EXPIRY_KEY_PREFIX = "expiry"


class RedisExpirySignal(IExpirySignal):
    """
    Registers expiry entries as `expiry:<object_id>` keys holding the handle.
    """

    def __init__(self, redis_repository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.prefix = EXPIRY_KEY_PREFIX

    def _entry_key(self, key: str) -> str:
        return self.redis_repo._make_key(f"{self.prefix}:{key}")

    def register(self, key: str, handle: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            if ttl_seconds:
                self.redis_repo.redis.set(self._entry_key(key), handle, ex=int(ttl_seconds))
            else:
                self.redis_repo.redis.set(self._entry_key(key), handle)
        except RedisError as e:
            logger.error(f"Error registering expiry for {key[:8]}: {e}")
            raise ExpirySignalError(f"Failed to register expiry for {key}", e)

    def cancel(self, key: str) -> bool:
        try:
            return self.redis_repo.redis.delete(self._entry_key(key)) > 0
        except RedisError as e:
            raise ExpirySignalError(f"Failed to cancel expiry for {key}", e)

    def clear(self) -> int:
        return self.redis_repo.delete_pattern(f"{self.prefix}:*")


class RedisExpiryNotificationSource(IExpiryNotificationSource):
    """
    Subscribes to `__keyevent@<db>__:expired` and yields the object IDs of
    lapsed expiry entries.

    Keyspace notifications are fire-and-forget: events published while no
    subscriber is connected are lost. The periodic sweep covers that gap.
    """

    def __init__(self, redis_client: redis.Redis, db: int = 0, key_prefix: str = "",
                 poll_timeout: float = 1.0):
        """
        Args:
            redis_client: Redis client (a dedicated connection is taken from its pool)
            db: Database number the expiry keys live in
            key_prefix: Global key prefix used by RedisRepository
            poll_timeout: Seconds to wait for a message before checking for close()
        """
        self.redis = redis_client
        self.channel = f"__keyevent@{db}__:expired"
        base = f"{key_prefix}:{EXPIRY_KEY_PREFIX}:" if key_prefix else f"{EXPIRY_KEY_PREFIX}:"
        self.entry_prefix = base
        self.poll_timeout = poll_timeout
        self._closed = threading.Event()

    def listen(self) -> Iterator[str]:
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        try:
            pubsub.subscribe(self.channel)
            logger.info(f"Subscribed to {self.channel}")
            while not self._closed.is_set():
                message = pubsub.get_message(timeout=self.poll_timeout)
                if not message or message.get("type") != "message":
                    continue

                expired_key = message["data"]
                if isinstance(expired_key, bytes):
                    expired_key = expired_key.decode('utf-8')
                if expired_key.startswith(self.entry_prefix):
                    yield expired_key[len(self.entry_prefix):]
        except RedisError as e:
            raise ExpirySignalError("Lost expiry notification subscription", e)
        finally:
            pubsub.close()

    def close(self) -> None:
        self._closed.set()
