"""
Account Repositories

Repository interface for account persistence and atomic storage accounting.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .entities import Account


class AccountRepository(ABC):
    """Abstract repository interface for account persistence."""

    @abstractmethod
    def create(self, account: Account) -> bool:
        """
        Persist a new account.

        Args:
            account: Account to store

        Returns:
            True if created, False if an account with that identity exists
        """
        pass

    @abstractmethod
    def get(self, account_id: str) -> Optional[Account]:
        """
        Retrieve an account by identity.

        Returns:
            Account if found, None otherwise
        """
        pass

    @abstractmethod
    def list_all(self) -> List[Account]:
        """Return every account, newest first."""
        pass

    @abstractmethod
    def admin_exists(self) -> bool:
        """Check whether at least one admin account exists."""
        pass

    @abstractmethod
    def set_quota_override(self, account_id: str, quota_bytes: Optional[int]) -> Optional[Account]:
        """
        Set or clear the per-account quota override.

        Args:
            account_id: Account identity
            quota_bytes: Override in bytes, or None to use the system default

        Returns:
            Updated Account, or None if the account does not exist
        """
        pass

    @abstractmethod
    def try_reserve(self, account_id: str, size: int, default_quota: int) -> bool:
        """
        Atomically increment storage_used if the result stays within quota.

        The effective quota (override or default_quota) is resolved at the
        moment of the atomic operation.

        Args:
            account_id: Account identity
            size: Bytes to reserve
            default_quota: System default quota in bytes

        Returns:
            True if the reservation was committed, False otherwise
        """
        pass

    @abstractmethod
    def release(self, account_id: str, size: int) -> bool:
        """
        Atomically decrement storage_used, never going below zero.

        Returns:
            True if the account exists and was updated
        """
        pass

    @abstractmethod
    def delete_all(self) -> int:
        """Remove every account. Returns the number removed."""
        pass
