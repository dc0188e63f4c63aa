"""
Redis Object Repository Implementation

Concrete Redis-based implementation of ObjectRepository interface.
The metadata record is authoritative: an object exists exactly when its
record does. Removal runs as one Lua script so concurrent deleters never
both see the record.

Scripts declare every key they touch in KEYS. The record, owner index and
expiry index live in different hash slots, so a single Redis node (or a
primary with replicas) is required; Redis Cluster is not supported.
"""

import json
import logging
from datetime import datetime
from typing import List, Optional

from redis.exceptions import RedisError

from burnbox.domain.errors import MetadataStoreError
from burnbox.domain.objects.entities import StoredObject
from burnbox.domain.objects.repositories import ObjectRepository

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1)


# Returns the removed record, or false if it was already gone.
DELETE_IF_EXISTS_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return false
end

redis.call('DEL', KEYS[1])
redis.call('SREM', KEYS[3], ARGV[1])
redis.call('ZREM', KEYS[2], ARGV[1])
return data
"""


def to_timestamp(value: datetime) -> float:
    """Seconds since the epoch for a naive UTC datetime."""
    return (value - EPOCH).total_seconds()


class RedisObjectRepository(ObjectRepository):
    """
    Redis-based implementation of ObjectRepository.

    Layout:
        object:<id>             JSON metadata record
        owner_objects:<owner>   set of object IDs per owner
        object_expiry           sorted set of object IDs scored by expires_at
    """

    def __init__(self, redis_repository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.object_prefix = "object"
        self.owner_prefix = "owner_objects"
        self.expiry_index_key = "object_expiry"

    def _object_key(self, object_id: str) -> str:
        return f"{self.object_prefix}:{object_id}"

    def _owner_key(self, owner_id: str) -> str:
        return f"{self.owner_prefix}:{owner_id}"

    def save(self, stored_object: StoredObject) -> bool:
        """
        Save metadata and index entries in one MULTI/EXEC transaction.
        """
        make_key = self.redis_repo._make_key
        try:
            pipeline = self.redis_repo.redis.pipeline(transaction=True)
            pipeline.set(make_key(self._object_key(stored_object.object_id)),
                         json.dumps(stored_object.to_dict()))
            pipeline.sadd(make_key(self._owner_key(stored_object.owner_id)),
                          stored_object.object_id)
            if stored_object.expires_at is not None:
                pipeline.zadd(make_key(self.expiry_index_key),
                              {stored_object.object_id: to_timestamp(stored_object.expires_at)})
            results = pipeline.execute()
        except RedisError as e:
            logger.error(f"Error saving object {stored_object.object_id[:8]}: {e}")
            raise MetadataStoreError(f"Failed to save object {stored_object.object_id}", e)
        return bool(results[0])

    def get(self, object_id: str) -> Optional[StoredObject]:
        data = self.redis_repo.get_json(self._object_key(object_id))
        if data is None:
            return None
        return StoredObject.from_dict(data)

    def delete_if_exists(self, object_id: str) -> Optional[StoredObject]:
        # The owner never changes, so its index key can be resolved up front.
        stored = self.get(object_id)
        if stored is None:
            return None

        result = self.redis_repo.eval(
            DELETE_IF_EXISTS_SCRIPT,
            [self._object_key(object_id), self.expiry_index_key,
             self._owner_key(stored.owner_id)],
            [object_id],
        )
        if not result:
            return None
        return StoredObject.from_dict(self.redis_repo.decode_json(result))

    def list_by_owner(self, owner_id: str) -> List[StoredObject]:
        make_key = self.redis_repo._make_key
        client = self.redis_repo.redis
        try:
            members = client.smembers(make_key(self._owner_key(owner_id)))
            pipeline = client.pipeline()
            for member in members:
                object_id = member.decode('utf-8') if isinstance(member, bytes) else member
                pipeline.get(make_key(self._object_key(object_id)))
            results = pipeline.execute()
        except RedisError as e:
            logger.error(f"Error listing objects for owner {owner_id}: {e}")
            raise MetadataStoreError(f"Failed to list objects for {owner_id}", e)

        objects = [StoredObject.from_dict(self.redis_repo.decode_json(raw))
                   for raw in results if raw is not None]
        objects.sort(key=lambda o: o.created_at, reverse=True)
        return objects

    def find_expired(self, now: datetime, limit: int = 100) -> List[str]:
        try:
            members = self.redis_repo.redis.zrangebyscore(
                self.redis_repo._make_key(self.expiry_index_key),
                "-inf",
                to_timestamp(now),
                start=0,
                num=limit,
            )
        except RedisError as e:
            logger.error(f"Error querying expiry index: {e}")
            raise MetadataStoreError("Failed to query expiry index", e)

        return [m.decode('utf-8') if isinstance(m, bytes) else m for m in members]

    def delete_all(self) -> int:
        removed = self.redis_repo.delete_pattern(f"{self.object_prefix}:*")
        self.redis_repo.delete_pattern(f"{self.owner_prefix}:*")
        self.redis_repo.delete(self.expiry_index_key)
        return removed
