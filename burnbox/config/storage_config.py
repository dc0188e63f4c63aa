"""
Storage Configuration

Physical blob storage settings.
"""

import os

from burnbox.infrastructure.local_object_storage_repository import LocalObjectStorageRepository


class StorageConfig:
    """Storage configuration settings."""

    def __init__(self):
        self.root = os.getenv("BURNBOX_STORAGE_ROOT", "/tmp/burnbox")


def create_storage_repository(config: StorageConfig = None) -> LocalObjectStorageRepository:
    """Create the blob store rooted at BURNBOX_STORAGE_ROOT."""
    if config is None:
        config = StorageConfig()
    return LocalObjectStorageRepository(config.root)
