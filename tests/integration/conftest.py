import os

import pytest
import redis

from burnbox.infrastructure.redis_repository import RedisRepository

TEST_PREFIX = "burnbox-test"


@pytest.fixture
def redis_client():
    """
    Yields a clean Redis client for integration testing.

    Uses REDIS_TEST_DB (default 15) so a developer's data is never flushed.
    """
    host = os.getenv("REDIS_HOST", "localhost")
    port = int(os.getenv("REDIS_PORT", 6379))
    db = int(os.getenv("REDIS_TEST_DB", 15))

    client = redis.Redis(host=host, port=port, db=db, decode_responses=False)

    try:
        client.ping()
    except redis.ConnectionError:
        pytest.skip("Redis service not available. Skipping integration tests.")

    client.flushdb()

    yield client

    client.flushdb()
    client.close()


@pytest.fixture
def redis_repo(redis_client):
    return RedisRepository(redis_client, TEST_PREFIX)
