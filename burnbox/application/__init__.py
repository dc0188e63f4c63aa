"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .account_service import AccountService
from .event_publisher import EventPublisher
from .expiry_listener import ExpiryListener
from .share_service import ShareService
from .system_service import SystemService

__all__ = [
    'AccountService',
    'EventPublisher',
    'ExpiryListener',
    'ShareService',
    'SystemService',
]
