"""
Accounts Domain

Account records, quota accounting and upload admission.
"""

from .entities import Account, AccountRole
from .repositories import AccountRepository
from .services import AccountManager, AdmissionController

__all__ = [
    "Account",
    "AccountRole",
    "AccountRepository",
    "AccountManager",
    "AdmissionController",
]
