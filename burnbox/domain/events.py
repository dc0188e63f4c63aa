"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the aggregate that generated the event (object or account ID)
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class ObjectCreatedEvent(DomainEvent):
    """
    Event emitted when an upload is admitted and stored.

    Attributes:
        aggregate_id: Object ID
        occurred_at: When the object was created
        owner_id: Uploading account
        size: Object size in bytes
        expires_at: Expiry instant, None for permanent objects
        single_use: Whether the object burns on first download
    """
    owner_id: str
    size: int
    expires_at: Optional[datetime]
    single_use: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "owner_id": self.owner_id,
            "size": self.size,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "single_use": self.single_use,
        })
        return base_dict


@dataclass(frozen=True)
class UploadRejectedEvent(DomainEvent):
    """
    Event emitted when admission refuses an upload.

    Attributes:
        aggregate_id: Account ID
        occurred_at: When the upload was rejected
        size: Requested size in bytes
        error_category: Reason for rejection
    """
    size: int
    error_category: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "size": self.size,
            "error_category": self.error_category,
        })
        return base_dict


@dataclass(frozen=True)
class ObjectDownloadedEvent(DomainEvent):
    """
    Event emitted when an object is handed out for download or preview.

    Attributes:
        aggregate_id: Object ID
        occurred_at: When the download started
        size: Object size in bytes
        preview: True for inline previews
    """
    size: int
    preview: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "size": self.size,
            "preview": self.preview,
        })
        return base_dict


@dataclass(frozen=True)
class ObjectDeletedEvent(DomainEvent):
    """
    Event emitted when an object leaves the Live state.

    Attributes:
        aggregate_id: Object ID
        occurred_at: When the record was removed
        owner_id: Owning account
        size: Bytes returned to the owner's quota
        trigger: "explicit", "consumed" or "expired"
    """
    owner_id: str
    size: int
    trigger: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "owner_id": self.owner_id,
            "size": self.size,
            "trigger": self.trigger,
        })
        return base_dict


@dataclass(frozen=True)
class SystemConfigUpdatedEvent(DomainEvent):
    """
    Event emitted when the system configuration changes.

    Attributes:
        aggregate_id: Always "system_config"
        occurred_at: When the update was stored
        max_file_size: New file-size ceiling in bytes
        default_storage_quota: New default quota in bytes
        version: Stored version number
    """
    max_file_size: int
    default_storage_quota: int
    version: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "max_file_size": self.max_file_size,
            "default_storage_quota": self.default_storage_quota,
            "version": self.version,
        })
        return base_dict


@dataclass(frozen=True)
class SystemResetEvent(DomainEvent):
    """
    Event emitted when all objects and accounts are wiped.

    Attributes:
        aggregate_id: Admin account that requested the reset
        occurred_at: When the reset completed
        objects_removed: Number of metadata records removed
        accounts_removed: Number of account records removed
    """
    objects_removed: int
    accounts_removed: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "objects_removed": self.objects_removed,
            "accounts_removed": self.accounts_removed,
        })
        return base_dict
