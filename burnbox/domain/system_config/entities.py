"""
System Configuration Entities

The singleton configuration record that bounds uploads and quotas.
"""

import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

BYTES_PER_MB = 1024 * 1024

# Max file size may never exceed this share of the default quota.
CEILING_QUOTA_PERCENT = 95


def ceiling_limit(quota_bytes: int) -> int:
    """
    Largest file-size ceiling allowed for a given default quota.

    Integer arithmetic keeps floor(quota * 0.95) exact for every byte count.

    Args:
        quota_bytes: Default storage quota in bytes

    Returns:
        floor(quota_bytes * 0.95)
    """
    return quota_bytes * CEILING_QUOTA_PERCENT // 100


def _env_megabytes(key: str, default: int) -> int:
    try:
        value = int(os.getenv(key, str(default)))
    except (TypeError, ValueError):
        value = default
    return max(1, value) * BYTES_PER_MB


@dataclass(frozen=True)
class SystemConfig:
    """
    Versioned system configuration record.

    Attributes:
        max_file_size: Ceiling for a single object, in bytes
        default_storage_quota: Quota applied to accounts without an override
        max_file_size_linked: When True the ceiling tracks 95% of the quota
        registration_allowed: Whether self-registration is open
        version: Monotonic version used for optimistic updates
    """
    max_file_size: int
    default_storage_quota: int
    max_file_size_linked: bool = True
    registration_allowed: bool = True
    updated_at: datetime = field(default_factory=datetime.utcnow)
    version: int = 0

    @classmethod
    def from_environment(cls) -> 'SystemConfig':
        """
        Build the default configuration from environment variables.

        STORAGE_QUOTA_MB (default 1024) and MAX_FILE_SIZE_MB (default 950)
        seed the record, which is then normalised so the ceiling rule holds.
        """
        config = cls(
            max_file_size=_env_megabytes("MAX_FILE_SIZE_MB", 950),
            default_storage_quota=_env_megabytes("STORAGE_QUOTA_MB", 1024),
        )
        return config.normalized()

    @property
    def ceiling_limit(self) -> int:
        return ceiling_limit(self.default_storage_quota)

    def normalized(self) -> 'SystemConfig':
        """Return a copy whose ceiling satisfies the linked/unlinked rule."""
        if self.max_file_size_linked:
            return replace(self, max_file_size=self.ceiling_limit)
        if self.max_file_size > self.ceiling_limit:
            return replace(self, max_file_size=self.ceiling_limit)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "max_file_size": self.max_file_size,
            "default_storage_quota": self.default_storage_quota,
            "max_file_size_linked": self.max_file_size_linked,
            "registration_allowed": self.registration_allowed,
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Limits shown to anonymous clients, rounded to whole megabytes."""
        return {
            "max_file_size_mb": round(self.max_file_size / BYTES_PER_MB),
            "default_storage_quota_mb": round(self.default_storage_quota / BYTES_PER_MB),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SystemConfig':
        """Create SystemConfig from dictionary."""
        return cls(
            max_file_size=int(data["max_file_size"]),
            default_storage_quota=int(data["default_storage_quota"]),
            max_file_size_linked=bool(data.get("max_file_size_linked", True)),
            registration_allowed=bool(data.get("registration_allowed", True)),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            version=int(data.get("version", 0)),
        )


@dataclass(frozen=True)
class SystemConfigUpdate:
    """Partial configuration update. None means "leave unchanged"."""
    default_storage_quota: Optional[int] = None
    max_file_size: Optional[int] = None
    max_file_size_linked: Optional[bool] = None
    registration_allowed: Optional[bool] = None

    @classmethod
    def from_megabytes(
        cls,
        default_storage_quota_mb: Optional[int] = None,
        max_file_size_mb: Optional[int] = None,
        max_file_size_linked: Optional[bool] = None,
        registration_allowed: Optional[bool] = None,
    ) -> 'SystemConfigUpdate':
        """Build an update from megabyte values as entered by administrators."""
        return cls(
            default_storage_quota=(
                int(default_storage_quota_mb) * BYTES_PER_MB
                if default_storage_quota_mb is not None else None
            ),
            max_file_size=(
                int(max_file_size_mb) * BYTES_PER_MB
                if max_file_size_mb is not None else None
            ),
            max_file_size_linked=max_file_size_linked,
            registration_allowed=registration_allowed,
        )
