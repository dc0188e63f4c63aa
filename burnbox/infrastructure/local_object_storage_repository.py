"""
Local Object Storage Repository Implementation

Concrete implementation of IObjectStorageRepository for the local filesystem.
Blobs are written under a single root with random names; every handle is
resolved and checked against that root before use.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from burnbox.domain.errors import ObjectStorageError, UnsafeHandleError
from burnbox.domain.objects.storage_repository import IObjectStorageRepository

logger = logging.getLogger(__name__)

WRITE_CHUNK_SIZE = 64 * 1024


class LocalObjectStorageRepository(IObjectStorageRepository):
    """
    Local filesystem implementation of IObjectStorageRepository.

    Writes go to a temporary name and are renamed into place once the byte
    count has been verified, so a failed upload never leaves a readable blob.

    Attributes:
        base_path: Root directory for stored blobs
    """

    def __init__(self, base_path: str = "/tmp/burnbox"):
        """
        Initialize the local object storage repository.

        Args:
            base_path: Root directory for blobs (default: /tmp/burnbox)
        """
        self.base_path = Path(base_path).resolve()
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ObjectStorageError(
                f"Failed to create storage directory: {self.base_path}", e
            )

    def _resolve(self, handle: str) -> Path:
        """
        Resolve a handle to an absolute path inside the root.

        Raises:
            UnsafeHandleError: If the handle is empty or escapes the root
        """
        if not handle or not handle.strip():
            raise UnsafeHandleError("Empty storage handle")

        full_path = (self.base_path / handle).resolve()
        if full_path == self.base_path or self.base_path not in full_path.parents:
            raise UnsafeHandleError(f"Handle resolves outside storage root: {handle}")
        return full_path

    def put(self, content: BinaryIO, size: int) -> str:
        handle = f"{uuid.uuid4().hex}.bin"
        final_path = self.base_path / handle
        temp_path = self.base_path / f".{handle}.part"

        written = 0
        try:
            with open(temp_path, "xb") as f:
                while True:
                    chunk = content.read(WRITE_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > size:
                        break
                    f.write(chunk)

            if written != size:
                raise ObjectStorageError(
                    f"Size mismatch: expected {size} bytes, received {written}"
                )

            os.replace(temp_path, final_path)
        except ObjectStorageError:
            self._discard(temp_path)
            raise
        except OSError as e:
            self._discard(temp_path)
            logger.error(f"Failed to write blob {handle}: {e}")
            raise ObjectStorageError(f"Failed to write blob: {e}", e)
        except Exception:
            self._discard(temp_path)
            raise

        logger.debug(f"Stored blob {handle} ({size} bytes)")
        return handle

    def open(self, handle: str) -> Optional[BinaryIO]:
        full_path = self._resolve(handle)
        try:
            return open(full_path, "rb")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ObjectStorageError(f"Failed to open blob {handle}: {e}", e)

    def delete(self, handle: str) -> bool:
        full_path = self._resolve(handle)
        try:
            full_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ObjectStorageError(f"Failed to delete blob {handle}: {e}", e)

    def is_safe(self, handle: str) -> bool:
        try:
            self._resolve(handle)
            return True
        except UnsafeHandleError:
            return False

    def exists(self, handle: str) -> bool:
        try:
            return self._resolve(handle).is_file()
        except (UnsafeHandleError, OSError):
            return False

    def clear(self) -> int:
        removed = 0
        for entry in self.base_path.iterdir():
            if not entry.is_file():
                continue
            try:
                entry.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                raise ObjectStorageError(f"Failed to remove {entry.name}: {e}", e)
        return removed

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial blob {path.name}: {e}")
