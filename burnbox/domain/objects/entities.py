"""
Stored Object Entities

Domain entities for uploaded objects and their public view.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .value_objects import ObjectId, PasswordHash, UploadOptions


@dataclass
class StoredObject:
    """
    Entity representing one uploaded file and its metadata.

    The object is live from creation until exactly one terminal deletion.
    handle and password_hash are internal and never leave the core.
    """
    object_id: str
    owner_id: str
    filename: str
    size: int
    handle: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    password_hash: Optional[str] = None
    single_use: bool = False

    @classmethod
    def create(cls, owner_id: str, filename: str, size: int, handle: str,
               options: UploadOptions, now: Optional[datetime] = None) -> 'StoredObject':
        """
        Factory method to create a new object record.

        Args:
            owner_id: Owning account identity
            filename: Original filename
            size: Size in bytes (must be positive)
            handle: Physical-location handle returned by the object store
            options: Upload options (ttl, password, single use)
            now: Creation time (defaults to utcnow)

        Returns:
            New StoredObject instance with a freshly generated identifier
        """
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")

        now = now or datetime.utcnow()
        expires_at = None
        if options.ttl_seconds is not None:
            expires_at = now + timedelta(seconds=options.ttl_seconds)

        password_hash = None
        if options.password:
            password_hash = PasswordHash.from_plaintext(options.password).value

        return cls(
            object_id=ObjectId.generate().value,
            owner_id=owner_id,
            filename=filename or "file",
            size=size,
            handle=handle,
            created_at=now,
            expires_at=expires_at,
            password_hash=password_hash,
            single_use=options.single_use,
        )

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def check_password(self, candidate: Optional[str]) -> bool:
        if not self.password_hash:
            return True
        return PasswordHash(self.password_hash).matches(candidate)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the object has outlived its TTL.

        Permanent objects never expire.
        """
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) >= self.expires_at

    def to_info(self) -> 'ObjectInfo':
        return ObjectInfo(
            object_id=self.object_id,
            filename=self.filename,
            size=self.size,
            has_password=self.has_password,
            single_use=self.single_use,
            expires_at=self.expires_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "object_id": self.object_id,
            "owner_id": self.owner_id,
            "filename": self.filename,
            "size": self.size,
            "handle": self.handle,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "password_hash": self.password_hash,
            "single_use": self.single_use,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredObject':
        """Create StoredObject from dictionary."""
        expires_at = data.get("expires_at")
        return cls(
            object_id=data["object_id"],
            owner_id=data["owner_id"],
            filename=data["filename"],
            size=int(data["size"]),
            handle=data["handle"],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            password_hash=data.get("password_hash") or None,
            single_use=bool(data.get("single_use", False)),
        )


@dataclass(frozen=True)
class ObjectInfo:
    """Public, unauthenticated view of an object."""
    object_id: str
    filename: str
    size: int
    has_password: bool
    single_use: bool
    expires_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object_id": self.object_id,
            "name": self.filename,
            "size": self.size,
            "has_password": self.has_password,
            "single_use": self.single_use,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
