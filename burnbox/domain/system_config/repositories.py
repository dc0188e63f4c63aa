"""
System Configuration Repositories

Repository interface for the versioned configuration singleton.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .entities import SystemConfig


class SystemConfigRepository(ABC):
    """Abstract repository for the configuration singleton."""

    @abstractmethod
    def get(self) -> Optional[SystemConfig]:
        """Return the stored configuration, or None if none exists yet."""
        pass

    @abstractmethod
    def create_if_absent(self, config: SystemConfig) -> SystemConfig:
        """
        Store config only if no configuration exists.

        Returns:
            The configuration that is stored after the call (either the one
            passed in or the one a concurrent writer created first)
        """
        pass

    @abstractmethod
    def compare_and_set(self, expected_version: int, config: SystemConfig) -> bool:
        """
        Replace the stored configuration if its version is still expected_version.

        Returns:
            True if written, False on a version conflict
        """
        pass

    @abstractmethod
    def delete(self) -> bool:
        """Remove the stored configuration."""
        pass
