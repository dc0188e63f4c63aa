"""
Stored Object Value Objects

Immutable value objects for type safety and validation.
"""

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash


class InvalidObjectIdError(ValueError):
    """Raised when an object identifier is malformed."""
    pass


@dataclass(frozen=True)
class ObjectId:
    """
    Value object representing a public object identifier.

    Identifiers double as the retrieval token, so they must be unguessable:
    at least 32 URL-safe characters.
    """
    value: str

    def __post_init__(self):
        if not self._is_valid():
            length = len(self.value) if isinstance(self.value, str) else 0
            raise InvalidObjectIdError(
                f"Invalid object id: must be at least 32 URL-safe characters, got {length}"
            )

    def _is_valid(self) -> bool:
        if not self.value or not isinstance(self.value, str):
            return False
        if len(self.value) < 32:
            return False
        return all(c.isalnum() or c in '-_' for c in self.value)

    @classmethod
    def generate(cls) -> 'ObjectId':
        """
        Generate a new identifier with 32 bytes of randomness.

        Returns:
            New ObjectId (approximately 43 characters)
        """
        return cls(secrets.token_urlsafe(32))

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check a raw string without raising."""
        try:
            cls(value)
            return True
        except InvalidObjectIdError:
            return False

    def __str__(self) -> str:
        return self.value


class ExpirationPreset(Enum):
    """Retention choices offered to uploaders."""
    PERMANENT = "permanent"
    ONE_MINUTE = "1m"
    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    SEVEN_DAYS = "7d"

    @property
    def ttl_seconds(self) -> Optional[int]:
        """Time to live in seconds, or None for permanent objects."""
        return _PRESET_TTLS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> 'ExpirationPreset':
        """
        Parse a preset string. Missing or unknown values fall back to 24h.
        """
        if value:
            for preset in cls:
                if preset.value == value.strip().lower():
                    return preset
        return cls.ONE_DAY


_PRESET_TTLS = {
    ExpirationPreset.PERMANENT: None,
    ExpirationPreset.ONE_MINUTE: 60,
    ExpirationPreset.ONE_HOUR: 3600,
    ExpirationPreset.ONE_DAY: 24 * 3600,
    ExpirationPreset.SEVEN_DAYS: 7 * 24 * 3600,
}


@dataclass(frozen=True)
class UploadOptions:
    """
    Options chosen by the uploader.

    Attributes:
        ttl_seconds: Lifetime in seconds, None for a permanent object
        password: Optional plaintext password (hashed before storage)
        single_use: Burn the object on its first successful download
    """
    ttl_seconds: Optional[int] = ExpirationPreset.ONE_DAY.ttl_seconds
    password: Optional[str] = None
    single_use: bool = False

    def __post_init__(self):
        if self.ttl_seconds is not None and self.ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {self.ttl_seconds}")

    @classmethod
    def from_preset(cls, expiration: Optional[str] = None, password: Optional[str] = None,
                    single_use: bool = False) -> 'UploadOptions':
        return cls(
            ttl_seconds=ExpirationPreset.parse(expiration).ttl_seconds,
            password=password or None,
            single_use=bool(single_use),
        )


@dataclass(frozen=True)
class PasswordHash:
    """Salted password hash; comparison is constant-time inside werkzeug."""
    value: str

    @classmethod
    def from_plaintext(cls, password: str) -> 'PasswordHash':
        return cls(generate_password_hash(password))

    def matches(self, candidate: Optional[str]) -> bool:
        if not candidate:
            return False
        return check_password_hash(self.value, candidate)

    def __str__(self) -> str:
        return self.value
