"""
Share Application Service

Coordinates the file-sharing use cases: upload, lookup, download, preview,
delete and expiry handling.
"""

import logging
from datetime import datetime
from typing import BinaryIO, List, Optional

from burnbox.application.event_publisher import EventPublisher
from burnbox.domain.accounts.services import AdmissionController
from burnbox.domain.events import (
    ObjectCreatedEvent,
    ObjectDeletedEvent,
    ObjectDownloadedEvent,
    UploadRejectedEvent,
)
from burnbox.domain.objects.entities import StoredObject
from burnbox.domain.objects.services import ObjectLifecycleManager
from burnbox.domain.objects.value_objects import UploadOptions
from burnbox.domain.results import (
    DeleteResult,
    DownloadResult,
    ObjectInfoResult,
    SweepResult,
    UploadResult,
)
from burnbox.domain.system_config.services import SystemConfigManager

logger = logging.getLogger(__name__)


class ShareService:
    """
    Application service for stored-object operations.

    Resolves the system configuration for each call, runs the domain
    services and publishes the resulting domain events.
    """

    def __init__(
        self,
        admission_controller: AdmissionController,
        lifecycle_manager: ObjectLifecycleManager,
        config_manager: SystemConfigManager,
        event_publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize ShareService.

        Args:
            admission_controller: Quota admission domain service
            lifecycle_manager: Object lifecycle domain service
            config_manager: Source of the per-call system configuration
            event_publisher: Optional publisher for domain events
        """
        self.admission = admission_controller
        self.lifecycle = lifecycle_manager
        self.config_manager = config_manager
        self.event_publisher = event_publisher
        self.lifecycle.add_expiry_observer(self._on_expired)

    def upload(self, owner_id: str, content: BinaryIO, size: int, filename: str,
               options: UploadOptions) -> UploadResult:
        """
        Admit and store an upload.

        Args:
            owner_id: Uploading account
            content: Binary stream of the file
            size: Declared size in bytes
            filename: Original filename
            options: Expiry, password and single-use settings

        Returns:
            UploadResult with the new object, or the admission rejection
        """
        config = self.config_manager.read()
        admission = self.admission.try_admit(owner_id, size, config)

        if not admission.admitted:
            logger.info(
                f"Upload rejected for {owner_id}: {admission.error_category.value}"
            )
            self._publish(UploadRejectedEvent(
                aggregate_id=owner_id,
                occurred_at=datetime.utcnow(),
                size=size or 0,
                error_category=admission.error_category.value,
            ))
            return UploadResult.create_failure(
                admission.error_category, admission.error_message
            )

        result = self.lifecycle.create(admission, content, filename, options)
        stored = result.stored_object
        self._publish(ObjectCreatedEvent(
            aggregate_id=stored.object_id,
            occurred_at=stored.created_at,
            owner_id=stored.owner_id,
            size=stored.size,
            expires_at=stored.expires_at,
            single_use=stored.single_use,
        ))
        return result

    def get_info(self, object_id: str) -> ObjectInfoResult:
        return self.lifecycle.resolve_metadata(object_id)

    def list_files(self, owner_id: str) -> List[StoredObject]:
        return self.lifecycle.list_owned(owner_id)

    def download(self, object_id: str, password: Optional[str] = None) -> DownloadResult:
        """
        Open an object for download.

        A successful single-use download has already removed the object
        record, so the deletion event is published here.
        """
        result = self.lifecycle.download(object_id, password)
        if not result.success:
            return result

        stored = result.stored_object
        self._publish(ObjectDownloadedEvent(
            aggregate_id=stored.object_id,
            occurred_at=datetime.utcnow(),
            size=stored.size,
        ))
        if stored.single_use:
            self._publish_deleted(stored, "consumed")
        return result

    def preview(self, object_id: str, password: Optional[str] = None) -> DownloadResult:
        result = self.lifecycle.preview(object_id, password)
        if result.success:
            self._publish(ObjectDownloadedEvent(
                aggregate_id=result.stored_object.object_id,
                occurred_at=datetime.utcnow(),
                size=result.stored_object.size,
                preview=True,
            ))
        return result

    def delete(self, object_id: str, requester_id: str) -> DeleteResult:
        result = self.lifecycle.delete(object_id, requester_id)
        if result.success:
            self._publish_deleted(result.stored_object, "explicit")
        return result

    def handle_expiry(self, object_id: str) -> bool:
        """
        Process an expiry notification. Safe to call more than once per object.

        Returns:
            True if this call cleaned up the object
        """
        return self.lifecycle.on_expiry_fired(object_id) is not None

    def sweep_expired(self, limit: int = 100) -> SweepResult:
        """Collect expired objects whose notification was missed."""
        result = self.lifecycle.sweep_expired(limit=limit)
        if result.cleaned or result.errors:
            logger.info(
                f"Expiry sweep examined {result.examined}, cleaned {result.cleaned}, "
                f"errors {len(result.errors or [])}"
            )
        return result

    def _on_expired(self, stored: StoredObject) -> None:
        self._publish_deleted(stored, "expired")

    def _publish_deleted(self, stored: StoredObject, trigger: str) -> None:
        self._publish(ObjectDeletedEvent(
            aggregate_id=stored.object_id,
            occurred_at=datetime.utcnow(),
            owner_id=stored.owner_id,
            size=stored.size,
            trigger=trigger,
        ))

    def _publish(self, event) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
