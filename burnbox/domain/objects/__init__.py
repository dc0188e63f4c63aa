"""
Stored Objects Domain

Expiring, optionally password-protected, optionally single-use objects.
"""

from .entities import ObjectInfo, StoredObject
from .expiry_signal import IExpiryNotificationSource, IExpirySignal
from .repositories import ObjectRepository
from .services import ObjectLifecycleManager
from .storage_repository import IObjectStorageRepository
from .streams import ObjectStream
from .value_objects import ExpirationPreset, ObjectId, PasswordHash, UploadOptions

__all__ = [
    "ObjectInfo",
    "StoredObject",
    "IExpirySignal",
    "IExpiryNotificationSource",
    "ObjectRepository",
    "ObjectLifecycleManager",
    "IObjectStorageRepository",
    "ObjectStream",
    "ExpirationPreset",
    "ObjectId",
    "PasswordHash",
    "UploadOptions",
]
