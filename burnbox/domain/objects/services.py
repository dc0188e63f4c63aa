"""
Stored Object Services

The object lifecycle state machine: Created -> Live -> Deleted.

Every deletion path (explicit delete, single-use consumption, expiry) starts
with the atomic delete-if-exists on the metadata record. Whichever caller wins
that race releases the quota and removes the blob; every other caller sees
"already gone" and does nothing.
"""

import logging
from datetime import datetime
from typing import BinaryIO, Callable, List, Optional

from ..accounts.services import AdmissionController
from ..errors import DomainError, ErrorCategory, MetadataStoreError
from ..results import (
    AdmissionResult,
    DeleteResult,
    DownloadResult,
    ObjectInfoResult,
    SweepResult,
    UploadResult,
)
from .entities import StoredObject
from .expiry_signal import IExpirySignal
from .repositories import ObjectRepository
from .storage_repository import IObjectStorageRepository
from .streams import ObjectStream
from .value_objects import ObjectId, UploadOptions

logger = logging.getLogger(__name__)


class ObjectLifecycleManager:
    """
    Domain service for creating, serving and deleting stored objects.
    """

    def __init__(
        self,
        object_repository: ObjectRepository,
        storage_repository: IObjectStorageRepository,
        expiry_signal: IExpirySignal,
        admission_controller: AdmissionController,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize ObjectLifecycleManager.

        Args:
            object_repository: Authoritative metadata store
            storage_repository: Physical byte storage
            expiry_signal: TTL trigger registry
            admission_controller: Used to release quota on every deletion path
            clock: Returns the current time (defaults to datetime.utcnow)
        """
        self.object_repo = object_repository
        self.storage = storage_repository
        self.expiry_signal = expiry_signal
        self.admission = admission_controller
        self.clock = clock or datetime.utcnow
        self._expiry_observers: List[Callable[[StoredObject], None]] = []

    def add_expiry_observer(self, observer: Callable[[StoredObject], None]) -> None:
        """
        Register a callback run with each object cleaned up by expiry.

        Covers every expiry path: notifications, the periodic sweep and the
        inline cleanup of an expired record found on access.
        """
        self._expiry_observers.append(observer)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, admission: AdmissionResult, content: BinaryIO, filename: str,
               options: UploadOptions) -> UploadResult:
        """
        Persist an admitted upload.

        Order: bytes, then metadata, then expiry entry. A failure at any step
        undoes the earlier steps and releases the reservation, so no partial
        object survives.

        Args:
            admission: Successful admission (quota already reserved)
            content: Binary stream of exactly admission.size bytes
            filename: Original filename
            options: TTL, password and single-use flag

        Returns:
            UploadResult with the new object

        Raises:
            ValueError: If the admission was not successful
            ObjectStorageError, MetadataStoreError, ExpirySignalError: On
                infrastructure failure, after rollback
            Exception: Whatever reading `content` raised, after rollback
        """
        if not admission.admitted:
            raise ValueError("create() requires a successful admission")

        owner_id, size = admission.account_id, admission.size

        try:
            handle = self.storage.put(content, size)
        except Exception as e:
            logger.error(f"Physical write failed for account {owner_id}: {e}")
            self._release_quota(owner_id, size)
            raise

        stored = StoredObject.create(owner_id, filename, size, handle, options, now=self.clock())

        try:
            if not self.object_repo.save(stored):
                raise MetadataStoreError(f"Failed to save metadata for {stored.object_id}")
        except DomainError:
            self._delete_blob(handle)
            self._release_quota(owner_id, size)
            raise

        try:
            self.expiry_signal.register(stored.object_id, handle, options.ttl_seconds)
        except DomainError:
            logger.error(f"Could not register expiry for {stored.object_id}, rolling back")
            if self.object_repo.delete_if_exists(stored.object_id) is not None:
                self._delete_blob(handle)
                self._release_quota(owner_id, size)
            raise

        logger.info(
            f"Created object {stored.object_id[:8]} for account {owner_id} "
            f"({size} bytes, ttl={options.ttl_seconds}, single_use={options.single_use})"
        )
        return UploadResult.create_success(stored)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def resolve_metadata(self, object_id: str) -> ObjectInfoResult:
        """
        Public lookup of name, size and protection flags.
        """
        stored = self._get_live(object_id)
        if stored is None:
            return ObjectInfoResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)
        return ObjectInfoResult.create_success(stored.to_info())

    def list_owned(self, owner_id: str) -> List[StoredObject]:
        """Live objects of one owner, newest first."""
        now = self.clock()
        return [obj for obj in self.object_repo.list_by_owner(owner_id)
                if not obj.is_expired(now)]

    def download(self, object_id: str, password: Optional[str] = None) -> DownloadResult:
        """
        Open an object for download.

        Single-use objects are claimed (metadata deleted) before any byte is
        sent; the returned stream releases quota and removes the blob when it
        is closed, whether or not the transfer completed.

        Args:
            object_id: Public object identifier
            password: Password supplied by the caller, if any

        Returns:
            DownloadResult with an ObjectStream on success
        """
        stored = self._get_live(object_id)
        if stored is None:
            return DownloadResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)

        denied = self._check_access(stored, password)
        if denied is not None:
            return denied

        if not stored.single_use:
            return self._open_stream(stored)

        claimed = self.object_repo.delete_if_exists(stored.object_id)
        if claimed is None:
            return DownloadResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)
        self._cancel_expiry(claimed.object_id)

        try:
            source = self.storage.open(claimed.handle)
        except DomainError as e:
            logger.error(f"Could not open claimed object {claimed.object_id[:8]}: {e}")
            source = None

        if source is None:
            self._release_resources(claimed)
            return DownloadResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)

        def finish_consumption(completed: bool) -> None:
            if not completed:
                logger.warning(
                    f"Single-use object {claimed.object_id[:8]} transfer did not complete; "
                    "burning anyway"
                )
            self._release_resources(claimed)

        stream = ObjectStream(source, claimed.size, on_close=finish_consumption)
        logger.info(f"Single-use object {claimed.object_id[:8]} claimed for download")
        return DownloadResult.create_success(claimed, stream)

    def preview(self, object_id: str, password: Optional[str] = None) -> DownloadResult:
        """
        Open an object for inline viewing. Never consumes the object.

        Single-use objects cannot be previewed.
        """
        stored = self._get_live(object_id)
        if stored is None:
            return DownloadResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)

        if stored.single_use:
            return DownloadResult.create_failure(ErrorCategory.PREVIEW_DISABLED)

        denied = self._check_access(stored, password)
        if denied is not None:
            return denied

        return self._open_stream(stored)

    # ------------------------------------------------------------------
    # Deletion paths
    # ------------------------------------------------------------------

    def delete(self, object_id: str, requester_id: str) -> DeleteResult:
        """
        Explicit delete by the owner.

        Args:
            object_id: Object to delete
            requester_id: Verified caller identity

        Returns:
            DeleteResult; NOT_FOUND if already gone, FORBIDDEN for non-owners
        """
        if not ObjectId.is_valid(object_id):
            return DeleteResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)

        stored = self.object_repo.get(object_id)
        if stored is None:
            return DeleteResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)

        if stored.owner_id != requester_id:
            return DeleteResult.create_failure(
                ErrorCategory.FORBIDDEN, "User not authorized to delete this file."
            )

        claimed = self.object_repo.delete_if_exists(object_id)
        if claimed is None:
            return DeleteResult.create_failure(ErrorCategory.OBJECT_NOT_FOUND)

        self._cancel_expiry(object_id)
        self._release_resources(claimed)
        logger.info(f"Object {object_id[:8]} deleted by owner {requester_id}")
        return DeleteResult.create_success(claimed)

    def on_expiry_fired(self, object_id: str) -> Optional[StoredObject]:
        """
        Clean up an object whose TTL elapsed.

        Idempotent: duplicate or late notifications find no record and do
        nothing.

        Returns:
            The cleaned-up object, or None if it was already gone
        """
        claimed = self.object_repo.delete_if_exists(object_id)
        if claimed is None:
            logger.debug(f"No record for expired key {object_id[:8]}; already cleaned up")
            return None

        self._release_resources(claimed)
        logger.info(f"Expired object {object_id[:8]} cleaned up")
        for observer in self._expiry_observers:
            observer(claimed)
        return claimed

    def sweep_expired(self, now: Optional[datetime] = None, limit: int = 100) -> SweepResult:
        """
        Collect objects whose TTL elapsed without a delivered notification.
        """
        result = SweepResult(errors=[])
        for object_id in self.object_repo.find_expired(now or self.clock(), limit=limit):
            result.examined += 1
            try:
                if self.on_expiry_fired(object_id) is not None:
                    result.cleaned += 1
            except DomainError as e:
                result.errors.append(f"{object_id[:8]}: {e}")
                logger.error(f"Error sweeping expired object {object_id[:8]}: {e}")
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_live(self, object_id: str) -> Optional[StoredObject]:
        if not ObjectId.is_valid(object_id):
            return None

        stored = self.object_repo.get(object_id)
        if stored is None:
            return None

        if stored.is_expired(self.clock()):
            # Notification not processed yet; clean up inline.
            self.on_expiry_fired(object_id)
            return None

        return stored

    def _check_access(self, stored: StoredObject,
                      password: Optional[str]) -> Optional[DownloadResult]:
        if stored.has_password:
            if not password:
                return DownloadResult.create_failure(ErrorCategory.PASSWORD_REQUIRED)
            if not stored.check_password(password):
                return DownloadResult.create_failure(ErrorCategory.INCORRECT_PASSWORD)

        if not self.storage.is_safe(stored.handle):
            logger.error(
                f"Security alert: handle for object {stored.object_id[:8]} "
                "resolves outside the storage root"
            )
            return DownloadResult.create_failure(ErrorCategory.ACCESS_DENIED)

        if not self.storage.exists(stored.handle):
            return DownloadResult.create_failure(
                ErrorCategory.OBJECT_NOT_FOUND, "File not found on server."
            )

        return None

    def _open_stream(self, stored: StoredObject) -> DownloadResult:
        source = self.storage.open(stored.handle)
        if source is None:
            return DownloadResult.create_failure(
                ErrorCategory.OBJECT_NOT_FOUND, "File not found on server."
            )
        return DownloadResult.create_success(stored, ObjectStream(source, stored.size))

    def _release_resources(self, claimed: StoredObject) -> None:
        """Release quota, then remove the blob. Both steps always run."""
        try:
            self._release_quota(claimed.owner_id, claimed.size)
        finally:
            self._delete_blob(claimed.handle)

    def _release_quota(self, owner_id: str, size: int) -> None:
        try:
            self.admission.release(owner_id, size)
        except DomainError as e:
            logger.error(f"Could not release {size} bytes for account {owner_id}: {e}")

    def _delete_blob(self, handle: str) -> None:
        try:
            self.storage.delete(handle)
        except DomainError as e:
            # Record is already gone, so this only leaks disk space.
            logger.error(f"Could not delete blob {handle}: {e}")

    def _cancel_expiry(self, object_id: str) -> None:
        try:
            self.expiry_signal.cancel(object_id)
        except DomainError as e:
            logger.warning(f"Could not cancel expiry entry for {object_id[:8]}: {e}")
