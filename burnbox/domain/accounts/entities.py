"""
Account Entities

Domain entities for account identity, role and storage accounting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class AccountRole(Enum):
    """Account role enumeration."""
    USER = "user"
    ADMIN = "admin"


@dataclass
class Account:
    """
    Entity representing an account that owns stored objects.

    storage_used is only ever changed through the atomic repository
    operations (reserve and release); the value held here is a snapshot.
    """
    account_id: str
    role: AccountRole = AccountRole.USER
    storage_used: int = 0
    storage_quota: Optional[int] = None  # None means use the system default
    created_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def create(cls, account_id: str, role: AccountRole = AccountRole.USER) -> 'Account':
        """
        Factory method to create a new account with nothing stored.

        Args:
            account_id: Opaque caller identity
            role: Account role

        Returns:
            New Account instance

        Raises:
            ValueError: If account_id is empty
        """
        if not account_id or not account_id.strip():
            raise ValueError("account_id is required")
        return cls(account_id=account_id.strip(), role=role)

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    def effective_quota(self, default_quota: int) -> int:
        """
        Resolve the quota that applies to this account.

        Args:
            default_quota: System default quota in bytes

        Returns:
            Override quota if set, otherwise the system default
        """
        if self.storage_quota is not None:
            return self.storage_quota
        return default_quota

    def remaining_quota(self, default_quota: int) -> int:
        """Bytes still available under the effective quota (never negative)."""
        return max(0, self.effective_quota(default_quota) - self.storage_used)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "account_id": self.account_id,
            "role": self.role.value,
            "storage_used": self.storage_used,
            "storage_quota": self.storage_quota,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Account':
        """Create Account from dictionary."""
        quota = data.get("storage_quota")
        return cls(
            account_id=data["account_id"],
            role=AccountRole(data.get("role", AccountRole.USER.value)),
            storage_used=int(data.get("storage_used") or 0),
            storage_quota=int(quota) if quota is not None else None,
            created_at=datetime.fromisoformat(data["created_at"]),
        )
