"""
Redis Account Repository Implementation

Concrete Redis-based implementation of AccountRepository interface.
Quota reservation and release run as Lua scripts so the check and the
increment happen in one atomic step on the server.
"""

import json
import logging
from typing import List, Optional

from redis.exceptions import RedisError

from burnbox.domain.accounts.entities import Account
from burnbox.domain.accounts.repositories import AccountRepository
from burnbox.domain.errors import MetadataStoreError

logger = logging.getLogger(__name__)


CREATE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('SET', KEYS[1], ARGV[1])
redis.call('SADD', KEYS[2], ARGV[2])
if ARGV[3] == 'admin' then
    redis.call('SADD', KEYS[3], ARGV[2])
end
return 1
"""

# Returns -1 if the account is missing, 0 if the quota would be exceeded,
# 1 if the reservation was committed.
RESERVE_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return -1
end

local account = cjson.decode(data)
local size = tonumber(ARGV[1])
local quota = account['storage_quota']
if quota == nil or quota == cjson.null then
    quota = tonumber(ARGV[2])
end

local used = tonumber(account['storage_used']) or 0
if used + size > quota then
    return 0
end

account['storage_used'] = used + size
redis.call('SET', KEYS[1], cjson.encode(account))
return 1
"""

RELEASE_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return 0
end

local account = cjson.decode(data)
local used = (tonumber(account['storage_used']) or 0) - tonumber(ARGV[1])
if used < 0 then
    used = 0
end

account['storage_used'] = used
redis.call('SET', KEYS[1], cjson.encode(account))
return 1
"""

SET_QUOTA_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return false
end

local account = cjson.decode(data)
if ARGV[1] == '' then
    account['storage_quota'] = cjson.null
else
    account['storage_quota'] = tonumber(ARGV[1])
end

local updated = cjson.encode(account)
redis.call('SET', KEYS[1], updated)
return updated
"""


class RedisAccountRepository(AccountRepository):
    """
    Redis-based implementation of AccountRepository.

    Layout:
        account:<id>    JSON account record
        accounts        set of all account identities
        admins          set of admin identities
    """

    def __init__(self, redis_repository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.account_prefix = "account"
        self.index_key = "accounts"
        self.admin_index_key = "admins"

    def _account_key(self, account_id: str) -> str:
        return f"{self.account_prefix}:{account_id}"

    def create(self, account: Account) -> bool:
        result = self.redis_repo.eval(
            CREATE_SCRIPT,
            [self._account_key(account.account_id), self.index_key, self.admin_index_key],
            [json.dumps(account.to_dict()), account.account_id, account.role.value],
        )
        return result == 1

    def get(self, account_id: str) -> Optional[Account]:
        data = self.redis_repo.get_json(self._account_key(account_id))
        if data is None:
            return None
        return Account.from_dict(data)

    def list_all(self) -> List[Account]:
        client = self.redis_repo.redis
        try:
            members = client.smembers(self.redis_repo._make_key(self.index_key))
            pipeline = client.pipeline()
            for member in members:
                account_id = member.decode('utf-8') if isinstance(member, bytes) else member
                pipeline.get(self.redis_repo._make_key(self._account_key(account_id)))
            results = pipeline.execute()
        except RedisError as e:
            logger.error(f"Error listing accounts: {e}")
            raise MetadataStoreError("Failed to list accounts", e)

        accounts = [Account.from_dict(self.redis_repo.decode_json(raw))
                    for raw in results if raw is not None]
        accounts.sort(key=lambda a: a.created_at, reverse=True)
        return accounts

    def admin_exists(self) -> bool:
        try:
            return self.redis_repo.redis.scard(
                self.redis_repo._make_key(self.admin_index_key)
            ) > 0
        except RedisError as e:
            raise MetadataStoreError("Failed to check for admin accounts", e)

    def set_quota_override(self, account_id: str, quota_bytes: Optional[int]) -> Optional[Account]:
        result = self.redis_repo.eval(
            SET_QUOTA_SCRIPT,
            [self._account_key(account_id)],
            ["" if quota_bytes is None else str(int(quota_bytes))],
        )
        if not result:
            return None
        return Account.from_dict(self.redis_repo.decode_json(result))

    def try_reserve(self, account_id: str, size: int, default_quota: int) -> bool:
        result = self.redis_repo.eval(
            RESERVE_SCRIPT,
            [self._account_key(account_id)],
            [str(int(size)), str(int(default_quota))],
        )
        if result == -1:
            logger.warning(f"Reserve attempted for missing account {account_id}")
        return result == 1

    def release(self, account_id: str, size: int) -> bool:
        result = self.redis_repo.eval(
            RELEASE_SCRIPT,
            [self._account_key(account_id)],
            [str(int(size))],
        )
        return result == 1

    def delete_all(self) -> int:
        removed = self.redis_repo.delete_pattern(f"{self.account_prefix}:*")
        self.redis_repo.delete(self.index_key)
        self.redis_repo.delete(self.admin_index_key)
        return removed
