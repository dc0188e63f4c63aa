"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from burnbox.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

password_request = api.model(
    "PasswordRequest",
    {
        "password": fields.String(
            required=False,
            description="Password for protected files",
            example="secret",
        ),
    },
)

config_update_request = api.model(
    "ConfigUpdateRequest",
    {
        "default_storage_quota_mb": fields.Integer(
            required=False, description="Default per-account quota in MB", min=1
        ),
        "max_file_size_mb": fields.Integer(
            required=False, description="Maximum single-file size in MB", min=1
        ),
        "max_file_size_linked": fields.Boolean(
            required=False, description="Keep max file size at 95% of the default quota"
        ),
        "registration_allowed": fields.Boolean(
            required=False, description="Allow self-registration"
        ),
    },
)

quota_request = api.model(
    "QuotaRequest",
    {
        "quota_mb": fields.Integer(
            required=False,
            description="Quota override in MB; null restores the system default",
            allow_null=True,
            min=0,
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

upload_response = api.model(
    "UploadResponse",
    {
        "object_id": fields.String(description="Public retrieval token"),
        "name": fields.String(description="Original filename"),
        "size": fields.Integer(description="Size in bytes"),
        "expires_at": fields.String(description="Expiry (ISO 8601), null if permanent"),
        "single_use": fields.Boolean(description="Deleted after the first download"),
        "has_password": fields.Boolean(description="Password protected"),
    },
)

file_info_response = api.model(
    "FileInfo",
    {
        "object_id": fields.String(description="Public retrieval token"),
        "name": fields.String(description="Original filename"),
        "size": fields.Integer(description="Size in bytes"),
        "has_password": fields.Boolean(description="Password protected"),
        "single_use": fields.Boolean(description="Deleted after the first download"),
        "expires_at": fields.String(description="Expiry (ISO 8601), null if permanent"),
    },
)

owned_file = api.inherit(
    "OwnedFile",
    file_info_response,
    {
        "created_at": fields.String(description="Upload time (ISO 8601)"),
    },
)

file_list_response = api.model(
    "FileList",
    {
        "files": fields.List(fields.Nested(owned_file)),
        "storage_used": fields.Integer(description="Bytes currently reserved"),
        "storage_quota": fields.Integer(description="Effective quota in bytes"),
        "storage_remaining": fields.Integer(description="Bytes still available"),
    },
)

public_config_response = api.model(
    "PublicConfig",
    {
        "max_file_size_mb": fields.Integer(description="Maximum single-file size in MB"),
        "default_storage_quota_mb": fields.Integer(description="Default quota in MB"),
    },
)

config_response = api.model(
    "SystemConfig",
    {
        "max_file_size": fields.Integer(description="Maximum single-file size in bytes"),
        "default_storage_quota": fields.Integer(description="Default quota in bytes"),
        "max_file_size_linked": fields.Boolean(description="Ceiling follows the quota"),
        "registration_allowed": fields.Boolean(description="Self-registration enabled"),
        "updated_at": fields.String(description="Last update (ISO 8601)"),
        "version": fields.Integer(description="Record version"),
    },
)

account_response = api.model(
    "Account",
    {
        "account_id": fields.String(description="Caller identity"),
        "role": fields.String(description="Account role", enum=["user", "admin"]),
        "storage_used": fields.Integer(description="Bytes currently reserved"),
        "storage_quota": fields.Integer(
            description="Quota override in bytes, null for the default", allow_null=True
        ),
        "created_at": fields.String(description="Registration time (ISO 8601)"),
    },
)

reset_response = api.model(
    "ResetResponse",
    {
        "objects_removed": fields.Integer(),
        "accounts_removed": fields.Integer(),
        "blobs_removed": fields.Integer(),
        "expiry_entries_removed": fields.Integer(),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
        "context": fields.Raw(description="Extra details, e.g. max_allowed"),
    },
)

health_response = api.model(
    "HealthResponse",
    {
        "status": fields.String(description="Overall status", enum=["ok", "degraded"]),
        "redis": fields.String(description="Redis connection status"),
        "celery": fields.String(description="Celery availability"),
        "expiry_listener": fields.String(description="Expiry listener status"),
    },
)
