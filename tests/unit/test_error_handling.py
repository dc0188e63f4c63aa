"""
Unit Tests for Error Handling

Tests error categories, user-facing messages and error responses.
"""

import unittest

from burnbox.domain.errors import (
    ERROR_MESSAGES,
    ApplicationError,
    DomainError,
    ErrorCategory,
    MetadataStoreError,
    ObjectStorageError,
    UnsafeHandleError,
    create_error_response,
)
from burnbox.domain.results import DownloadResult, SweepResult


class TestApplicationError(unittest.TestCase):
    """Test ApplicationError base exception class."""

    def test_initialization_uses_category_messages(self):
        error = ApplicationError(
            category=ErrorCategory.QUOTA_EXCEEDED,
            technical_message="used 6MB of 10MB",
            context={"quota": 10},
        )

        self.assertEqual(error.title, "Storage Quota Exceeded")
        self.assertEqual(error.message, ERROR_MESSAGES[ErrorCategory.QUOTA_EXCEEDED]["message"])
        self.assertEqual(error.technical_message, "used 6MB of 10MB")

    def test_message_override(self):
        error = ApplicationError(ErrorCategory.FORBIDDEN, message="Admin access required.")

        self.assertEqual(error.to_dict()["message"], "Admin access required.")
        self.assertEqual(error.to_dict()["title"], "Forbidden")

    def test_to_dict_omits_empty_context(self):
        data = ApplicationError(ErrorCategory.OBJECT_NOT_FOUND).to_dict()

        self.assertEqual(data["error"], "object_not_found")
        self.assertNotIn("context", data)

    def test_every_category_has_messages(self):
        for category in ErrorCategory:
            info = ERROR_MESSAGES[category]
            self.assertTrue(info["title"] and info["message"] and info["action"])


class TestCreateErrorResponse(unittest.TestCase):

    def test_response_tuple(self):
        body, status = create_error_response(
            ErrorCategory.CEILING_EXCEEDS_QUOTA_LIMIT,
            context={"max_allowed": 95},
            status_code=400,
        )

        self.assertEqual(status, 400)
        self.assertEqual(body["error"], "ceiling_exceeds_quota_limit")
        self.assertEqual(body["context"], {"max_allowed": 95})


class TestExceptionHierarchy(unittest.TestCase):

    def test_infrastructure_errors_are_domain_errors(self):
        for error_type in (MetadataStoreError, ObjectStorageError, UnsafeHandleError):
            self.assertTrue(issubclass(error_type, DomainError))
        self.assertTrue(issubclass(UnsafeHandleError, ObjectStorageError))

    def test_original_error_preserved(self):
        cause = ConnectionError("refused")
        error = MetadataStoreError("Redis unavailable", cause)

        self.assertIs(error.original_error, cause)
        self.assertEqual(str(error), "Redis unavailable")


class TestResults(unittest.TestCase):

    def test_failure_defaults_to_category_message(self):
        result = DownloadResult.create_failure(ErrorCategory.PASSWORD_REQUIRED)

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "This file is protected by a password.")
        self.assertEqual(result.to_dict()["error_category"], "password_required")

    def test_sweep_result_to_dict(self):
        result = SweepResult(examined=2, cleaned=1, errors=["abc: boom"])

        self.assertEqual(result.to_dict(), {"examined": 2, "cleaned": 1, "errors": ["abc: boom"]})
