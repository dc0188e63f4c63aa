"""
Caller Identity

The upstream gateway authenticates callers and forwards the verified
identity in request headers. Nothing here verifies credentials.
"""

from dataclasses import dataclass
from typing import Optional

from flask import request

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


@dataclass(frozen=True)
class Caller:
    """Verified caller identity as forwarded by the gateway."""
    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_caller() -> Optional[Caller]:
    """
    Read the caller identity from the current request.

    Returns:
        Caller, or None if the request carries no identity
    """
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        return None
    role = (request.headers.get(USER_ROLE_HEADER) or "user").strip().lower()
    return Caller(user_id=user_id, role=role)
