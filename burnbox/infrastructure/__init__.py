"""Infrastructure layer for Redis and the local filesystem."""

from .local_object_storage_repository import LocalObjectStorageRepository
from .redis_account_repository import RedisAccountRepository
from .redis_expiry_signal import RedisExpiryNotificationSource, RedisExpirySignal
from .redis_object_repository import RedisObjectRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .redis_system_config_repository import RedisSystemConfigRepository

__all__ = [
    'LocalObjectStorageRepository',
    'RedisAccountRepository',
    'RedisExpiryNotificationSource',
    'RedisExpirySignal',
    'RedisObjectRepository',
    'RedisConnectionManager',
    'RedisRepository',
    'RedisSystemConfigRepository',
]
