"""
Operation Result Value Objects

Discriminated outcomes returned by the core. Expected conditions
(not found, wrong password, quota exceeded) are values, not exceptions.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .errors import ERROR_MESSAGES, ErrorCategory

if TYPE_CHECKING:
    from .accounts.entities import Account
    from .objects.entities import ObjectInfo, StoredObject
    from .objects.streams import ObjectStream
    from .system_config.entities import SystemConfig


@dataclass
class OperationResult:
    """
    Base result carrying success state and an optional error category.
    """

    success: bool
    error_category: Optional[ErrorCategory] = None
    error_message: Optional[str] = None

    @classmethod
    def create_failure(
        cls,
        error_category: ErrorCategory,
        error_message: Optional[str] = None,
        **payload: Any,
    ):
        """
        Create a failed result.

        Args:
            error_category: Category of the outcome
            error_message: Human-readable message (defaults to the category message)
            **payload: Extra fields defined by the subclass

        Returns:
            Result instance indicating failure
        """
        if error_message is None:
            error_message = ERROR_MESSAGES[error_category]["message"]
        return cls(
            success=False,
            error_category=error_category,
            error_message=error_message,
            **payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "success": self.success,
            "error": self.error_message,
            "error_category": self.error_category.value if self.error_category else None,
        }


@dataclass
class AdmissionResult(OperationResult):
    """Outcome of an admission check; on success the quota is reserved."""

    account_id: Optional[str] = None
    size: int = 0
    quota: Optional[int] = None
    max_file_size: Optional[int] = None

    @property
    def admitted(self) -> bool:
        return self.success

    @classmethod
    def create_admitted(cls, account_id: str, size: int, quota: int,
                        max_file_size: int) -> 'AdmissionResult':
        return cls(success=True, account_id=account_id, size=size,
                   quota=quota, max_file_size=max_file_size)


@dataclass
class UploadResult(OperationResult):
    """Outcome of admit-and-create."""

    stored_object: Optional['StoredObject'] = None

    @classmethod
    def create_success(cls, stored_object: 'StoredObject') -> 'UploadResult':
        return cls(success=True, stored_object=stored_object)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.stored_object is not None:
            data["object_id"] = self.stored_object.object_id
            data["expires_at"] = (
                self.stored_object.expires_at.isoformat()
                if self.stored_object.expires_at else None
            )
        return data


@dataclass
class ObjectInfoResult(OperationResult):
    """Outcome of a public metadata lookup."""

    info: Optional['ObjectInfo'] = None

    @classmethod
    def create_success(cls, info: 'ObjectInfo') -> 'ObjectInfoResult':
        return cls(success=True, info=info)


@dataclass
class DownloadResult(OperationResult):
    """
    Outcome of a download or preview request.

    On success, stream must be consumed or closed by the caller; closing it
    runs any burn-on-access cleanup.
    """

    stored_object: Optional['StoredObject'] = None
    stream: Optional['ObjectStream'] = None

    @classmethod
    def create_success(cls, stored_object: 'StoredObject',
                       stream: 'ObjectStream') -> 'DownloadResult':
        return cls(success=True, stored_object=stored_object, stream=stream)


@dataclass
class DeleteResult(OperationResult):
    """Outcome of an explicit delete."""

    stored_object: Optional['StoredObject'] = None

    @classmethod
    def create_success(cls, stored_object: 'StoredObject') -> 'DeleteResult':
        return cls(success=True, stored_object=stored_object)


@dataclass
class ConfigUpdateResult(OperationResult):
    """Outcome of a configuration update."""

    config: Optional['SystemConfig'] = None
    max_allowed: Optional[int] = None

    @classmethod
    def create_success(cls, config: 'SystemConfig') -> 'ConfigUpdateResult':
        return cls(success=True, config=config)


@dataclass
class AccountResult(OperationResult):
    """Outcome of an account operation."""

    account: Optional['Account'] = None

    @classmethod
    def create_success(cls, account: 'Account') -> 'AccountResult':
        return cls(success=True, account=account)


@dataclass
class SweepResult:
    """Counts produced by an expiry sweep."""

    examined: int = 0
    cleaned: int = 0
    errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "examined": self.examined,
            "cleaned": self.cleaned,
            "errors": list(self.errors or []),
        }
