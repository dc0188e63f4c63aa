"""
System Configuration Services

Reads and updates the configuration singleton while keeping the
file-size ceiling within 95% of the default quota.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..errors import ErrorCategory, MetadataStoreError
from ..results import ConfigUpdateResult
from .entities import BYTES_PER_MB, SystemConfig, SystemConfigUpdate, ceiling_limit
from .repositories import SystemConfigRepository

logger = logging.getLogger(__name__)


class SystemConfigManager:
    """
    Domain service for the system configuration record.

    Updates are optimistic: read the versioned record, compute the new one,
    write it only if the version is unchanged, retry on conflict.
    """

    def __init__(
        self,
        config_repository: SystemConfigRepository,
        defaults_factory: Optional[Callable[[], SystemConfig]] = None,
        max_retries: int = 10,
    ):
        """
        Initialize SystemConfigManager.

        Args:
            config_repository: Repository for the singleton
            defaults_factory: Builds the record created on first read
            max_retries: Attempts before giving up on write conflicts
        """
        self.config_repo = config_repository
        self.defaults_factory = defaults_factory or SystemConfig.from_environment
        self.max_retries = max_retries

    def read(self) -> SystemConfig:
        """
        Return the configuration, creating the default record if absent.
        """
        config = self.config_repo.get()
        if config is None:
            config = self.config_repo.create_if_absent(self.defaults_factory().normalized())
            logger.info("Created default system configuration")
        return config

    def update(self, update: SystemConfigUpdate) -> ConfigUpdateResult:
        """
        Apply a partial update.

        Args:
            update: Fields to change (None leaves a field unchanged)

        Returns:
            ConfigUpdateResult with the stored configuration, or a rejection

        Raises:
            MetadataStoreError: If conflicts persist past max_retries
        """
        for attempt in range(1, self.max_retries + 1):
            current = self.read()
            result = self.apply(current, update)
            if not result.success:
                return result

            if self.config_repo.compare_and_set(current.version, result.config):
                return result

            logger.debug(f"Configuration version conflict, retrying (attempt {attempt})")

        raise MetadataStoreError(
            f"Configuration update conflicted {self.max_retries} times"
        )

    @staticmethod
    def apply(current: SystemConfig, update: SystemConfigUpdate,
              now: Optional[datetime] = None) -> ConfigUpdateResult:
        """
        Compute the configuration that results from an update.

        Pure function over the current record; nothing is written.
        """
        if update.default_storage_quota is not None and update.default_storage_quota <= 0:
            return ConfigUpdateResult.create_failure(
                ErrorCategory.INVALID_REQUEST, "Default storage quota must be positive."
            )
        if update.max_file_size is not None and update.max_file_size <= 0:
            return ConfigUpdateResult.create_failure(
                ErrorCategory.INVALID_REQUEST, "Max file size must be positive."
            )

        linked = (
            update.max_file_size_linked
            if update.max_file_size_linked is not None
            else current.max_file_size_linked
        )
        quota = (
            update.default_storage_quota
            if update.default_storage_quota is not None
            else current.default_storage_quota
        )
        limit = ceiling_limit(quota)

        if linked:
            max_file_size = limit
        elif update.max_file_size is not None:
            if update.max_file_size > limit:
                return ConfigUpdateResult.create_failure(
                    ErrorCategory.CEILING_EXCEEDS_QUOTA_LIMIT,
                    "Max file size cannot exceed 95% of the default quota "
                    f"({limit // BYTES_PER_MB} MB).",
                    max_allowed=limit,
                )
            max_file_size = update.max_file_size
        else:
            max_file_size = min(current.max_file_size, limit)

        registration_allowed = (
            update.registration_allowed
            if update.registration_allowed is not None
            else current.registration_allowed
        )

        config = replace(
            current,
            max_file_size=max_file_size,
            default_storage_quota=quota,
            max_file_size_linked=linked,
            registration_allowed=registration_allowed,
            updated_at=now or datetime.utcnow(),
            version=current.version + 1,
        )
        return ConfigUpdateResult.create_success(config)
