"""
Object Storage Repository Interface

Abstract interface for physical byte storage.
The store owns no semantics beyond store, read and delete by handle. Handles
are opaque to the domain; implementations must refuse any handle that would
resolve outside their configured root.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class IObjectStorageRepository(ABC):
    """
    Interface for physical object storage operations.

    Contract Guarantees:
    - put() returns a fresh handle; it never overwrites an existing blob
    - delete() is idempotent
    - every method refuses handles that escape the storage root
    """

    @abstractmethod
    def put(self, content: BinaryIO, size: int) -> str:
        """
        Persist content and return its handle.

        Args:
            content: Binary stream positioned at the start of the data
            size: Expected byte count; a mismatch is a write failure

        Returns:
            Handle identifying the stored blob

        Raises:
            ObjectStorageError: If the write fails or the size does not match
        """
        pass  # pragma: no cover

    @abstractmethod
    def open(self, handle: str) -> Optional[BinaryIO]:
        """
        Open a stored blob for reading.

        Returns:
            Binary stream (caller closes it), or None if the blob is missing

        Raises:
            UnsafeHandleError: If the handle resolves outside the root
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, handle: str) -> bool:
        """
        Delete a stored blob.

        Returns:
            True if the blob was removed, False if it did not exist

        Raises:
            UnsafeHandleError: If the handle resolves outside the root
            ObjectStorageError: If removal fails
        """
        pass  # pragma: no cover

    @abstractmethod
    def is_safe(self, handle: str) -> bool:
        """Check that a handle resolves inside the storage root."""
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, handle: str) -> bool:
        """Check whether a blob exists. Never raises."""
        pass  # pragma: no cover

    @abstractmethod
    def clear(self) -> int:
        """Remove every blob under the root. Returns the number removed."""
        pass  # pragma: no cover
