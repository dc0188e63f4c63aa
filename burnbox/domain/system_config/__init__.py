"""
System Configuration Domain

The singleton holding the file-size ceiling, default quota and
registration switch.
"""

from .entities import SystemConfig, SystemConfigUpdate, ceiling_limit
from .repositories import SystemConfigRepository
from .services import SystemConfigManager

__all__ = [
    "SystemConfig",
    "SystemConfigUpdate",
    "SystemConfigRepository",
    "SystemConfigManager",
    "ceiling_limit",
]
