"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from burnbox.domain.events import (
    DomainEvent,
    ObjectCreatedEvent,
    ObjectDeletedEvent,
    ObjectDownloadedEvent,
    SystemConfigUpdatedEvent,
    SystemResetEvent,
    UploadRejectedEvent,
)


class LoggingEventHandler:
    """
    Infrastructure event handler for logging domain events.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        if isinstance(event, ObjectCreatedEvent):
            self._handle_object_created(event)
        elif isinstance(event, UploadRejectedEvent):
            self._handle_upload_rejected(event)
        elif isinstance(event, ObjectDownloadedEvent):
            self._handle_object_downloaded(event)
        elif isinstance(event, ObjectDeletedEvent):
            self._handle_object_deleted(event)
        elif isinstance(event, SystemConfigUpdatedEvent):
            self._handle_config_updated(event)
        elif isinstance(event, SystemResetEvent):
            self._handle_system_reset(event)
        else:
            self.logger.debug(
                f"Unhandled event: {event.__class__.__name__} "
                f"(aggregate_id={event.aggregate_id})"
            )

    def _handle_object_created(self, event: ObjectCreatedEvent) -> None:
        expires = event.expires_at.isoformat() if event.expires_at else "never"
        self.logger.info(
            f"Object created: object_id={event.aggregate_id[:8]}, owner={event.owner_id}, "
            f"size={event.size} bytes, expires_at={expires}, single_use={event.single_use}"
        )

    def _handle_upload_rejected(self, event: UploadRejectedEvent) -> None:
        self.logger.info(
            f"Upload rejected: account={event.aggregate_id}, "
            f"size={event.size} bytes, reason={event.error_category}"
        )

    def _handle_object_downloaded(self, event: ObjectDownloadedEvent) -> None:
        kind = "previewed" if event.preview else "downloaded"
        self.logger.info(
            f"Object {kind}: object_id={event.aggregate_id[:8]}, size={event.size} bytes"
        )

    def _handle_object_deleted(self, event: ObjectDeletedEvent) -> None:
        self.logger.info(
            f"Object deleted: object_id={event.aggregate_id[:8]}, owner={event.owner_id}, "
            f"released={event.size} bytes, trigger={event.trigger}"
        )

    def _handle_config_updated(self, event: SystemConfigUpdatedEvent) -> None:
        self.logger.info(
            f"System configuration updated: version={event.version}, "
            f"max_file_size={event.max_file_size}, "
            f"default_storage_quota={event.default_storage_quota}"
        )

    def _handle_system_reset(self, event: SystemResetEvent) -> None:
        self.logger.warning(
            f"System reset by {event.aggregate_id}: removed {event.objects_removed} objects "
            f"and {event.accounts_removed} accounts"
        )
