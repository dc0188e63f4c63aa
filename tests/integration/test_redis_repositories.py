"""
Redis Repository Integration Tests

Runs the Redis adapters against a real server: the Lua quota scripts, the
atomic delete-if-exists claim, optimistic config writes and expiry
notifications.
"""

import threading
import time
from datetime import datetime, timedelta

import pytest

from burnbox.config.redis_config import enable_expiry_notifications
from burnbox.domain.accounts.entities import Account, AccountRole
from burnbox.domain.objects.entities import StoredObject
from burnbox.domain.objects.value_objects import UploadOptions
from burnbox.domain.system_config.entities import SystemConfig
from burnbox.infrastructure.redis_account_repository import RedisAccountRepository
from burnbox.infrastructure.redis_expiry_signal import (
    RedisExpiryNotificationSource,
    RedisExpirySignal,
)
from burnbox.infrastructure.redis_object_repository import RedisObjectRepository
from burnbox.infrastructure.redis_system_config_repository import RedisSystemConfigRepository
from tests.integration.conftest import TEST_PREFIX

MB = 1024 * 1024


@pytest.fixture
def accounts(redis_repo):
    repo = RedisAccountRepository(redis_repo)
    repo.create(Account.create("alice"))
    return repo


@pytest.fixture
def objects(redis_repo):
    return RedisObjectRepository(redis_repo)


def make_object(owner_id="alice", ttl_seconds=60, now=None):
    return StoredObject.create(
        owner_id, "notes.txt", 100, "abc.bin", UploadOptions(ttl_seconds=ttl_seconds), now=now
    )


class TestRedisAccountRepository:

    def test_create_is_exclusive(self, accounts):
        assert accounts.create(Account.create("alice")) is False
        assert accounts.get("alice").storage_used == 0

    def test_reserve_and_release(self, accounts):
        assert accounts.try_reserve("alice", 6 * MB, 10 * MB) is True
        assert accounts.try_reserve("alice", 6 * MB, 10 * MB) is False
        assert accounts.get("alice").storage_used == 6 * MB

        assert accounts.release("alice", 6 * MB) is True
        assert accounts.get("alice").storage_used == 0

    def test_release_clamps_at_zero(self, accounts):
        accounts.release("alice", 100)

        assert accounts.get("alice").storage_used == 0

    def test_reserve_missing_account(self, accounts):
        assert accounts.try_reserve("ghost", 1, 10) is False

    def test_override_applies_inside_script(self, accounts):
        accounts.set_quota_override("alice", 1 * MB)

        assert accounts.try_reserve("alice", 2 * MB, 10 * MB) is False

        cleared = accounts.set_quota_override("alice", None)
        assert cleared.storage_quota is None
        assert accounts.try_reserve("alice", 2 * MB, 10 * MB) is True

    def test_concurrent_reservations_respect_quota(self, accounts):
        barrier = threading.Barrier(20)
        wins = []

        def reserve():
            barrier.wait()
            if accounts.try_reserve("alice", 1 * MB, 10 * MB):
                wins.append(1)

        threads = [threading.Thread(target=reserve) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(wins) == 10
        assert accounts.get("alice").storage_used == 10 * MB

    def test_admin_index_and_listing(self, accounts):
        assert accounts.admin_exists() is False
        accounts.create(Account.create("root", AccountRole.ADMIN))

        assert accounts.admin_exists() is True
        assert {a.account_id for a in accounts.list_all()} == {"alice", "root"}

        assert accounts.delete_all() == 2
        assert accounts.admin_exists() is False
        assert accounts.list_all() == []


class TestRedisObjectRepository:

    def test_save_and_get(self, objects):
        stored = make_object()
        objects.save(stored)

        assert objects.get(stored.object_id) == stored
        assert [o.object_id for o in objects.list_by_owner("alice")] == [stored.object_id]

    def test_delete_if_exists_claims_once(self, objects):
        stored = make_object()
        objects.save(stored)
        barrier = threading.Barrier(10)
        claims = []

        def claim():
            barrier.wait()
            if objects.delete_if_exists(stored.object_id) is not None:
                claims.append(1)

        threads = [threading.Thread(target=claim) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(claims) == 1
        assert objects.get(stored.object_id) is None
        assert objects.list_by_owner("alice") == []
        assert objects.find_expired(datetime.utcnow() + timedelta(days=1)) == []

    def test_find_expired_uses_index(self, objects):
        now = datetime(2024, 1, 1)
        soon = make_object(ttl_seconds=60, now=now)
        later = make_object(ttl_seconds=3600, now=now)
        permanent = make_object(ttl_seconds=None, now=now)
        for stored in (soon, later, permanent):
            objects.save(stored)

        assert objects.find_expired(now + timedelta(seconds=59)) == []
        assert objects.find_expired(now + timedelta(seconds=60)) == [soon.object_id]
        assert objects.find_expired(now + timedelta(days=1), limit=1) == [soon.object_id]

    def test_delete_all(self, objects):
        for _ in range(3):
            objects.save(make_object())

        assert objects.delete_all() == 3
        assert objects.list_by_owner("alice") == []


class TestRedisSystemConfigRepository:

    def test_create_if_absent_keeps_first(self, redis_repo):
        repo = RedisSystemConfigRepository(redis_repo)
        first = SystemConfig(max_file_size=95, default_storage_quota=100)
        second = SystemConfig(max_file_size=9, default_storage_quota=10)

        assert repo.create_if_absent(first) == first
        assert repo.create_if_absent(second) == first

    def test_compare_and_set_checks_version(self, redis_repo):
        repo = RedisSystemConfigRepository(redis_repo)
        base = SystemConfig(max_file_size=95, default_storage_quota=100)
        repo.create_if_absent(base)
        updated = SystemConfig(max_file_size=47, default_storage_quota=50, version=1)

        assert repo.compare_and_set(5, updated) is False
        assert repo.compare_and_set(0, updated) is True
        assert repo.get().version == 1
        assert repo.compare_and_set(0, updated) is False


class TestRedisExpirySignal:

    def test_register_and_cancel(self, redis_repo, redis_client):
        signal = RedisExpirySignal(redis_repo)

        signal.register("object-1", "abc.bin", 60)

        key = f"{TEST_PREFIX}:expiry:object-1"
        assert redis_client.get(key) == b"abc.bin"
        assert 0 < redis_client.ttl(key) <= 60
        assert signal.cancel("object-1") is True
        assert signal.cancel("object-1") is False

    def test_permanent_entry_has_no_ttl(self, redis_repo, redis_client):
        RedisExpirySignal(redis_repo).register("object-2", "abc.bin", None)

        assert redis_client.ttl(f"{TEST_PREFIX}:expiry:object-2") == -1

    def test_expired_entry_is_delivered(self, redis_repo, redis_client):
        if not enable_expiry_notifications(redis_client):
            pytest.skip("Server does not allow enabling keyspace notifications")

        db = redis_client.connection_pool.connection_kwargs.get("db", 0)
        source = RedisExpiryNotificationSource(
            redis_client, db=db, key_prefix=TEST_PREFIX, poll_timeout=0.1
        )
        received = []

        def consume():
            for object_id in source.listen():
                received.append(object_id)
                source.close()

        consumer = threading.Thread(target=consume, daemon=True)
        consumer.start()
        time.sleep(0.3)

        RedisExpirySignal(redis_repo).register("object-3", "abc.bin", 1)

        consumer.join(timeout=10)
        source.close()

        assert received == ["object-3"]
