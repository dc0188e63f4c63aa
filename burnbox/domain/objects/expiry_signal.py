"""
Expiry Signal Interfaces

The expiry signal turns "expires in N seconds" into a deletion event without
polling. It is a trigger only and never authoritative for existence.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional


class IExpirySignal(ABC):
    """Registers and cancels time-to-live entries keyed by object identifier."""

    @abstractmethod
    def register(self, key: str, handle: str, ttl_seconds: Optional[int] = None) -> None:
        """
        Register an expiry entry.

        Args:
            key: Object identifier
            handle: Physical-location handle stored as the entry value
            ttl_seconds: Time to live; None stores an entry that never fires

        Raises:
            ExpirySignalError: If the entry cannot be stored
        """
        pass

    @abstractmethod
    def cancel(self, key: str) -> bool:
        """
        Remove an expiry entry. Safe on absent or already-fired keys.

        Returns:
            True if an entry was removed
        """
        pass

    @abstractmethod
    def clear(self) -> int:
        """Remove every expiry entry. Returns the number removed."""
        pass


class IExpiryNotificationSource(ABC):
    """
    Inbound transport delivering expired keys, at least once each.
    """

    @abstractmethod
    def listen(self) -> Iterator[str]:
        """
        Yield object identifiers as their entries expire.

        Blocks between notifications and ends once close() is called.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop delivering notifications."""
        pass
