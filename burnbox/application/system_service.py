"""
System Application Service

Configuration reads and updates, and the administrative full reset.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from burnbox.application.event_publisher import EventPublisher
from burnbox.domain.accounts.repositories import AccountRepository
from burnbox.domain.events import SystemConfigUpdatedEvent, SystemResetEvent
from burnbox.domain.objects.expiry_signal import IExpirySignal
from burnbox.domain.objects.repositories import ObjectRepository
from burnbox.domain.objects.storage_repository import IObjectStorageRepository
from burnbox.domain.results import ConfigUpdateResult
from burnbox.domain.system_config.entities import SystemConfig, SystemConfigUpdate
from burnbox.domain.system_config.repositories import SystemConfigRepository
from burnbox.domain.system_config.services import SystemConfigManager

logger = logging.getLogger(__name__)


class SystemService:
    """
    Application service for system-wide administration.
    """

    def __init__(
        self,
        config_manager: SystemConfigManager,
        config_repository: SystemConfigRepository,
        account_repository: AccountRepository,
        object_repository: ObjectRepository,
        storage_repository: IObjectStorageRepository,
        expiry_signal: IExpirySignal,
        event_publisher: Optional[EventPublisher] = None,
    ):
        self.config_manager = config_manager
        self.config_repo = config_repository
        self.account_repo = account_repository
        self.object_repo = object_repository
        self.storage = storage_repository
        self.expiry_signal = expiry_signal
        self.event_publisher = event_publisher

    def get_config(self) -> SystemConfig:
        return self.config_manager.read()

    def get_public_config(self) -> Dict[str, Any]:
        return self.config_manager.read().to_public_dict()

    def update_config(self, update: SystemConfigUpdate) -> ConfigUpdateResult:
        """
        Apply a configuration update and publish the change.

        Args:
            update: Partial update (None fields are left unchanged)
        """
        result = self.config_manager.update(update)
        if result.success and self.event_publisher is not None:
            config = result.config
            self.event_publisher.publish(SystemConfigUpdatedEvent(
                aggregate_id="system_config",
                occurred_at=config.updated_at,
                max_file_size=config.max_file_size,
                default_storage_quota=config.default_storage_quota,
                version=config.version,
            ))
        return result

    def reset(self, requested_by: str) -> Dict[str, int]:
        """
        Wipe every account, object, expiry entry and blob, and the configuration.

        Expiry entries go first so no notification fires for a record that is
        about to be removed anyway.

        Returns:
            Counts of removed items
        """
        logger.warning(f"System reset requested by {requested_by}")

        expiry_removed = self.expiry_signal.clear()
        objects_removed = self.object_repo.delete_all()
        accounts_removed = self.account_repo.delete_all()
        self.config_repo.delete()
        blobs_removed = self.storage.clear()

        if self.event_publisher is not None:
            self.event_publisher.publish(SystemResetEvent(
                aggregate_id=requested_by,
                occurred_at=datetime.utcnow(),
                objects_removed=objects_removed,
                accounts_removed=accounts_removed,
            ))

        return {
            "objects_removed": objects_removed,
            "accounts_removed": accounts_removed,
            "blobs_removed": blobs_removed,
            "expiry_entries_removed": expiry_removed,
        }
