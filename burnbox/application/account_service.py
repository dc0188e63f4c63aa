"""
Account Application Service

Coordinates registration, first-admin setup and quota administration.
"""

import logging
from typing import List, Optional

from burnbox.domain.accounts.entities import Account
from burnbox.domain.accounts.services import AccountManager
from burnbox.domain.results import AccountResult
from burnbox.domain.system_config.services import SystemConfigManager

logger = logging.getLogger(__name__)


class AccountService:
    """Application service for account operations."""

    def __init__(self, account_manager: AccountManager, config_manager: SystemConfigManager):
        """
        Initialize AccountService.

        Args:
            account_manager: Account domain service
            config_manager: Source of the registration switch and default quota
        """
        self.account_manager = account_manager
        self.config_manager = config_manager

    def register(self, account_id: str) -> AccountResult:
        return self.account_manager.register(account_id, self.config_manager.read())

    def setup_admin(self, account_id: str) -> AccountResult:
        result = self.account_manager.setup_admin(account_id)
        if result.success:
            logger.warning(f"Administrator account created: {account_id}")
        return result

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.account_manager.get(account_id)

    def list_accounts(self) -> List[Account]:
        return self.account_manager.list_accounts()

    def set_quota_override(self, account_id: str, quota_bytes: Optional[int]) -> AccountResult:
        result = self.account_manager.set_quota_override(account_id, quota_bytes)
        if result.success:
            logger.info(f"Quota override for {account_id} set to {quota_bytes}")
        return result

    def default_quota(self) -> int:
        return self.config_manager.read().default_storage_quota
