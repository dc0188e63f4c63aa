"""
Redis Configuration

Configures Redis connection settings and provides factory functions
for creating Redis clients and repositories.
"""

import logging
import os
from typing import Optional

import redis
from redis.exceptions import ResponseError

from burnbox.infrastructure.redis_repository import RedisConnectionManager, RedisRepository

logger = logging.getLogger(__name__)


class RedisConfig:
    """Redis configuration settings."""

    def __init__(self):
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", 6379))
        self.db = int(os.getenv("REDIS_DB", 0))
        self.password = os.getenv("REDIS_PASSWORD")
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", 20))
        self.socket_timeout = float(os.getenv("REDIS_SOCKET_TIMEOUT", 5))
        self.key_prefix = os.getenv("REDIS_KEY_PREFIX", "burnbox")

        # Redis URL format: redis://[:password@]host:port/db
        self.url = os.getenv("REDIS_URL")
        if self.url:
            connection_params = redis.connection.parse_url(self.url)
            self.host = connection_params.get("host", self.host)
            self.port = connection_params.get("port", self.port)
            self.db = connection_params.get("db", self.db)
            self.password = connection_params.get("password", self.password)


# Global Redis connection manager
_redis_manager: Optional[RedisConnectionManager] = None
_redis_config: Optional[RedisConfig] = None


def init_redis(config: Optional[RedisConfig] = None) -> RedisConnectionManager:
    """
    Initialize Redis connection manager.

    Args:
        config: Redis configuration, uses default if None

    Returns:
        RedisConnectionManager instance
    """
    global _redis_manager, _redis_config

    if config is None:
        config = RedisConfig()

    _redis_config = config
    _redis_manager = RedisConnectionManager(
        host=config.host,
        port=config.port,
        db=config.db,
        password=config.password,
        max_connections=config.max_connections,
        socket_timeout=config.socket_timeout,
    )
    return _redis_manager


def get_redis_config() -> RedisConfig:
    if _redis_config is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_config


def get_redis_client() -> redis.Redis:
    """
    Get Redis client instance.

    Raises:
        RuntimeError: If Redis is not initialized
    """
    if _redis_manager is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")

    return _redis_manager.client


def get_redis_repository(key_prefix: Optional[str] = None) -> RedisRepository:
    """
    Get Redis repository with a key prefix.

    Args:
        key_prefix: Prefix for all keys (defaults to REDIS_KEY_PREFIX)
    """
    if key_prefix is None:
        key_prefix = get_redis_config().key_prefix
    return RedisRepository(get_redis_client(), key_prefix)


def enable_expiry_notifications(client: redis.Redis) -> bool:
    """
    Turn on keyevent notifications for expired keys.

    Managed Redis services often forbid CONFIG SET; in that case the server
    must be configured with notify-keyspace-events containing "Ex".

    Returns:
        True if the setting was applied
    """
    try:
        current = client.config_get("notify-keyspace-events").get("notify-keyspace-events", "")
        if isinstance(current, bytes):
            current = current.decode('utf-8')
        if "E" in current and ("x" in current or "A" in current):
            return True
        flags = "".join(sorted(set(current + "Ex")))
        client.config_set("notify-keyspace-events", flags)
        logger.info(f"Enabled Redis keyspace notifications ({flags})")
        return True
    except ResponseError as e:
        logger.warning(
            f"Could not configure keyspace notifications ({e}); "
            "expired objects will be collected by the periodic sweep"
        )
        return False


def redis_health_check() -> bool:
    """
    Check Redis connection health.

    Returns:
        True if Redis is healthy, False otherwise
    """
    if _redis_manager is None:
        return False

    return _redis_manager.health_check()
