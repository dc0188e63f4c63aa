"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Expected outcomes (not found, wrong password, quota exceeded) are returned
as result values carrying an ErrorCategory; exceptions are reserved for faults.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    # Admission
    EMPTY_FILE = "empty_file"
    FILE_TOO_LARGE = "file_too_large"
    QUOTA_EXCEEDED = "quota_exceeded"
    ACCOUNT_NOT_FOUND = "account_not_found"

    # Access
    OBJECT_NOT_FOUND = "object_not_found"
    PASSWORD_REQUIRED = "password_required"
    INCORRECT_PASSWORD = "incorrect_password"
    ACCESS_DENIED = "access_denied"
    FORBIDDEN = "forbidden"
    PREVIEW_DISABLED = "preview_disabled"

    # Configuration and accounts
    CEILING_EXCEEDS_QUOTA_LIMIT = "ceiling_exceeds_quota_limit"
    REGISTRATION_CLOSED = "registration_closed"
    ACCOUNT_EXISTS = "account_exists"
    INVALID_REQUEST = "invalid_request"
    UNAUTHENTICATED = "unauthenticated"

    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.EMPTY_FILE: {
        "title": "Empty File",
        "message": "Cannot upload empty files.",
        "action": "Choose a file that contains data.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The file exceeds the maximum allowed size.",
        "action": "Upload a smaller file or split it into parts.",
    },
    ErrorCategory.QUOTA_EXCEEDED: {
        "title": "Storage Quota Exceeded",
        "message": "This upload would exceed your storage quota.",
        "action": "Delete some of your files to free up space.",
    },
    ErrorCategory.ACCOUNT_NOT_FOUND: {
        "title": "Account Not Found",
        "message": "No account exists for this identity.",
        "action": "Register before uploading files.",
    },
    ErrorCategory.OBJECT_NOT_FOUND: {
        "title": "File Not Found",
        "message": "Link expired or file not found.",
        "action": "Ask the sender for a new link.",
    },
    ErrorCategory.PASSWORD_REQUIRED: {
        "title": "Password Required",
        "message": "This file is protected by a password.",
        "action": "Enter the password to continue.",
    },
    ErrorCategory.INCORRECT_PASSWORD: {
        "title": "Incorrect Password",
        "message": "The password you entered is not correct.",
        "action": "Check the password and try again.",
    },
    ErrorCategory.ACCESS_DENIED: {
        "title": "Access Denied",
        "message": "The requested file cannot be served.",
        "action": "Contact the administrator if the problem persists.",
    },
    ErrorCategory.FORBIDDEN: {
        "title": "Forbidden",
        "message": "You are not allowed to perform this operation.",
        "action": "Only the owner or an administrator can do this.",
    },
    ErrorCategory.PREVIEW_DISABLED: {
        "title": "Preview Disabled",
        "message": "Preview is disabled for one-time downloads.",
        "action": "Download the file instead.",
    },
    ErrorCategory.CEILING_EXCEEDS_QUOTA_LIMIT: {
        "title": "Max File Size Too Large",
        "message": "Max file size cannot exceed 95% of the default quota.",
        "action": "Lower the max file size or raise the default quota.",
    },
    ErrorCategory.REGISTRATION_CLOSED: {
        "title": "Registration Closed",
        "message": "Registration is currently disabled by the administrator.",
        "action": "Ask an administrator to create your account.",
    },
    ErrorCategory.ACCOUNT_EXISTS: {
        "title": "Account Exists",
        "message": "An account already exists for this identity.",
        "action": "Use the existing account.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.UNAUTHENTICATED: {
        "title": "Authentication Required",
        "message": "This operation requires an authenticated caller.",
        "action": "Sign in and try again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class MetadataStoreError(DomainError):
    """Raised when the metadata store cannot be reached or answers badly."""
    pass


class ObjectStorageError(DomainError):
    """Raised when a physical object cannot be written, read or removed."""
    pass


class UnsafeHandleError(ObjectStorageError):
    """Raised when a physical handle resolves outside the storage root."""
    pass


class ExpirySignalError(DomainError):
    """Raised when an expiry entry cannot be registered or cancelled."""
    pass


# ============================================================================
# Application Layer Exceptions (Can have infrastructure concerns)
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain outcomes with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information returned to the client
            message: User-facing message replacing the category default
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = message or error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        data = {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }
        if self.context:
            data["context"] = self.context
        return data


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
    message: Optional[str] = None,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code
        message: User-facing message replacing the category default

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context, message)
    return error.to_dict(), status_code
