"""
Stored Object Repositories

Repository interface for object metadata persistence.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import StoredObject


class ObjectRepository(ABC):
    """
    Abstract repository interface for object metadata.

    The metadata store is authoritative for object existence.
    Infrastructure failures raise MetadataStoreError.
    """

    @abstractmethod
    def save(self, stored_object: StoredObject) -> bool:
        """
        Save object metadata and index it by owner and expiry time.

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    def get(self, object_id: str) -> Optional[StoredObject]:
        """
        Retrieve an object by identifier.

        Returns:
            StoredObject if found, None otherwise
        """
        pass

    @abstractmethod
    def delete_if_exists(self, object_id: str) -> Optional[StoredObject]:
        """
        Atomically remove an object record and its index entries.

        This is the linearization point for every deletion path: exactly one
        concurrent caller receives the record, all others receive None.

        Returns:
            The removed StoredObject, or None if it was already gone
        """
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[StoredObject]:
        """Return the live objects of one owner, newest first."""
        pass

    @abstractmethod
    def find_expired(self, now: datetime, limit: int = 100) -> List[str]:
        """
        Find identifiers of objects whose expires_at is at or before now.

        Args:
            now: Reference time
            limit: Maximum number of identifiers to return

        Returns:
            List of object identifiers
        """
        pass

    @abstractmethod
    def delete_all(self) -> int:
        """Remove every object record. Returns the number removed."""
        pass
