"""
Account Services

Domain services for upload admission and account management.
"""

import logging
from typing import List, Optional

from ..errors import ErrorCategory
from ..results import AccountResult, AdmissionResult
from ..system_config.entities import BYTES_PER_MB, SystemConfig
from .entities import Account, AccountRole
from .repositories import AccountRepository

logger = logging.getLogger(__name__)


class AdmissionController:
    """
    Decides whether an upload fits and reserves the quota for it.

    Checks run cheapest first: size, ceiling, then quota against the current
    account snapshot. Only then is the atomic reserve attempted, which
    re-checks the quota inside the store and closes the race window.
    """

    def __init__(self, account_repository: AccountRepository):
        """
        Initialize AdmissionController with repository.

        Args:
            account_repository: Repository providing atomic reserve/release
        """
        self.account_repo = account_repository

    def try_admit(self, owner_id: str, requested_bytes: int,
                  config: SystemConfig) -> AdmissionResult:
        """
        Admit an upload and reserve its quota.

        Args:
            owner_id: Uploading account
            requested_bytes: Size of the candidate upload
            config: System configuration resolved for this call

        Returns:
            AdmissionResult; on success storage_used has already been
            incremented durably
        """
        if requested_bytes is None or requested_bytes <= 0:
            return AdmissionResult.create_failure(
                ErrorCategory.EMPTY_FILE, account_id=owner_id, size=requested_bytes or 0
            )

        account = self.account_repo.get(owner_id)
        if account is None:
            return AdmissionResult.create_failure(
                ErrorCategory.ACCOUNT_NOT_FOUND, account_id=owner_id, size=requested_bytes
            )

        quota = account.effective_quota(config.default_storage_quota)

        if requested_bytes > config.max_file_size:
            limit_mb = round(config.max_file_size / BYTES_PER_MB)
            return AdmissionResult.create_failure(
                ErrorCategory.FILE_TOO_LARGE,
                f"File is too large. Maximum size is {limit_mb}MB.",
                account_id=owner_id,
                size=requested_bytes,
                quota=quota,
                max_file_size=config.max_file_size,
            )

        if account.storage_used + requested_bytes > quota:
            return self._quota_exceeded(owner_id, requested_bytes, quota, config)

        if not self.account_repo.try_reserve(owner_id, requested_bytes,
                                             config.default_storage_quota):
            logger.info(
                f"Quota reservation lost race for account {owner_id} "
                f"({requested_bytes} bytes)"
            )
            return self._quota_exceeded(owner_id, requested_bytes, quota, config)

        return AdmissionResult.create_admitted(
            account_id=owner_id,
            size=requested_bytes,
            quota=quota,
            max_file_size=config.max_file_size,
        )

    def release(self, owner_id: str, size: int) -> bool:
        """
        Give back previously reserved bytes.

        Args:
            owner_id: Account identity
            size: Bytes to release

        Returns:
            True if the account was updated
        """
        if size <= 0:
            return False
        released = self.account_repo.release(owner_id, size)
        if not released:
            logger.warning(f"Could not release {size} bytes for missing account {owner_id}")
        return released

    @staticmethod
    def _quota_exceeded(owner_id: str, size: int, quota: int,
                        config: SystemConfig) -> AdmissionResult:
        quota_mb = round(quota / BYTES_PER_MB)
        return AdmissionResult.create_failure(
            ErrorCategory.QUOTA_EXCEEDED,
            f"Storage quota exceeded. Your quota is {quota_mb}MB.",
            account_id=owner_id,
            size=size,
            quota=quota,
            max_file_size=config.max_file_size,
        )


class AccountManager:
    """
    Domain service for account registration and administration.
    """

    def __init__(self, account_repository: AccountRepository):
        self.account_repo = account_repository

    def register(self, account_id: str, config: SystemConfig,
                 role: AccountRole = AccountRole.USER) -> AccountResult:
        """
        Register a new account if registration is open.

        Args:
            account_id: Verified caller identity
            config: System configuration resolved for this call
            role: Role for the new account

        Returns:
            AccountResult with the created account
        """
        if not config.registration_allowed:
            return AccountResult.create_failure(ErrorCategory.REGISTRATION_CLOSED)
        return self._create(account_id, role)

    def setup_admin(self, account_id: str) -> AccountResult:
        """
        Create the first administrator. Refused once any admin exists.
        """
        if self.account_repo.admin_exists():
            return AccountResult.create_failure(
                ErrorCategory.FORBIDDEN, "Admin account already exists."
            )
        return self._create(account_id, AccountRole.ADMIN)

    def get(self, account_id: str) -> Optional[Account]:
        return self.account_repo.get(account_id)

    def list_accounts(self) -> List[Account]:
        return self.account_repo.list_all()

    def set_quota_override(self, account_id: str,
                           quota_bytes: Optional[int]) -> AccountResult:
        """
        Set or clear an account's quota override.

        Args:
            account_id: Target account
            quota_bytes: New override in bytes, or None for the system default
        """
        if quota_bytes is not None and quota_bytes < 0:
            return AccountResult.create_failure(
                ErrorCategory.INVALID_REQUEST, "Quota cannot be negative."
            )
        account = self.account_repo.set_quota_override(account_id, quota_bytes)
        if account is None:
            return AccountResult.create_failure(ErrorCategory.ACCOUNT_NOT_FOUND)
        return AccountResult.create_success(account)

    def _create(self, account_id: str, role: AccountRole) -> AccountResult:
        try:
            account = Account.create(account_id, role)
        except ValueError as e:
            return AccountResult.create_failure(ErrorCategory.INVALID_REQUEST, str(e))

        if not self.account_repo.create(account):
            return AccountResult.create_failure(ErrorCategory.ACCOUNT_EXISTS)

        logger.info(f"Registered {role.value} account {account.account_id}")
        return AccountResult.create_success(account)
