"""
Redis System Configuration Repository Implementation

Stores the configuration singleton as one versioned JSON record and
updates it with WATCH/MULTI optimistic transactions.
"""

import json
import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from burnbox.domain.errors import MetadataStoreError
from burnbox.domain.system_config.entities import SystemConfig
from burnbox.domain.system_config.repositories import SystemConfigRepository

logger = logging.getLogger(__name__)


class RedisSystemConfigRepository(SystemConfigRepository):
    """Redis-based implementation of SystemConfigRepository."""

    def __init__(self, redis_repository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.config_key = "system_config"

    def get(self) -> Optional[SystemConfig]:
        data = self.redis_repo.get_json(self.config_key)
        if data is None:
            return None
        return SystemConfig.from_dict(data)

    def create_if_absent(self, config: SystemConfig) -> SystemConfig:
        redis_key = self.redis_repo._make_key(self.config_key)
        try:
            created = self.redis_repo.redis.set(redis_key, json.dumps(config.to_dict()), nx=True)
        except RedisError as e:
            logger.error(f"Error creating system configuration: {e}")
            raise MetadataStoreError("Failed to create system configuration", e)

        if created:
            return config

        existing = self.get()
        if existing is None:
            raise MetadataStoreError("System configuration vanished during creation")
        return existing

    def compare_and_set(self, expected_version: int, config: SystemConfig) -> bool:
        redis_key = self.redis_repo._make_key(self.config_key)
        try:
            with self.redis_repo.redis.pipeline() as pipe:
                pipe.watch(redis_key)
                current = self.redis_repo.decode_json(pipe.get(redis_key))
                current_version = int(current.get("version", 0)) if current else None
                if current_version != expected_version:
                    pipe.unwatch()
                    return False

                pipe.multi()
                pipe.set(redis_key, json.dumps(config.to_dict()))
                pipe.execute()
                return True
        except redis.WatchError:
            logger.debug("System configuration changed during update")
            return False
        except RedisError as e:
            logger.error(f"Error updating system configuration: {e}")
            raise MetadataStoreError("Failed to update system configuration", e)

    def delete(self) -> bool:
        return self.redis_repo.delete(self.config_key)
