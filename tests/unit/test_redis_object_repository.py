"""
Unit Tests for the Redis Object Repository

Checks the keys handed to the delete-if-exists script without a Redis
server; tests/integration covers the script itself.
"""

import json
from unittest.mock import Mock

from burnbox.domain.objects.entities import StoredObject
from burnbox.domain.objects.value_objects import UploadOptions
from burnbox.infrastructure.redis_object_repository import (
    DELETE_IF_EXISTS_SCRIPT,
    RedisObjectRepository,
)
from burnbox.infrastructure.redis_repository import RedisRepository
from tests.conftest import OWNER_ID


def make_repo(record=None, script_result=None):
    redis_repo = Mock(spec=RedisRepository)
    redis_repo.get_json.return_value = record
    redis_repo.eval.return_value = script_result
    redis_repo.decode_json.side_effect = RedisRepository.decode_json
    return RedisObjectRepository(redis_repo), redis_repo


def make_object():
    return StoredObject.create(OWNER_ID, "notes.txt", 10, "abc.bin", UploadOptions())


class TestDeleteIfExists:

    def test_script_receives_every_key_it_touches(self):
        stored = make_object()
        raw = json.dumps(stored.to_dict())
        repo, redis_repo = make_repo(stored.to_dict(), raw)

        claimed = repo.delete_if_exists(stored.object_id)

        assert claimed == stored
        script, keys, args = redis_repo.eval.call_args[0]
        assert script == DELETE_IF_EXISTS_SCRIPT
        assert keys == [
            f"object:{stored.object_id}",
            "object_expiry",
            f"owner_objects:{OWNER_ID}",
        ]
        assert args == [stored.object_id]

    def test_missing_record_skips_script(self):
        repo, redis_repo = make_repo(record=None)

        assert repo.delete_if_exists("a" * 43) is None
        redis_repo.eval.assert_not_called()

    def test_record_claimed_elsewhere_returns_none(self):
        stored = make_object()
        repo, _ = make_repo(stored.to_dict(), script_result=None)

        assert repo.delete_if_exists(stored.object_id) is None
