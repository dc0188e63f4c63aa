"""
API Namespaces - Organized endpoint groups
"""

import os
from typing import Optional
from urllib.parse import quote

from flask import Response, current_app, request
from flask_restx import Namespace, Resource

from burnbox.api.identity import get_caller
from burnbox.api.v1.models import (
    account_response,
    config_response,
    config_update_request,
    error_response,
    file_info_response,
    file_list_response,
    health_response,
    password_request,
    public_config_response,
    quota_request,
    reset_response,
    upload_response,
)
from burnbox.domain.errors import ErrorCategory, create_error_response
from burnbox.domain.objects.entities import StoredObject
from burnbox.domain.objects.value_objects import UploadOptions
from burnbox.domain.results import OperationResult
from burnbox.domain.system_config.entities import BYTES_PER_MB, SystemConfigUpdate

STATUS_CODES = {
    ErrorCategory.EMPTY_FILE: 400,
    ErrorCategory.FILE_TOO_LARGE: 413,
    ErrorCategory.QUOTA_EXCEEDED: 413,
    ErrorCategory.ACCOUNT_NOT_FOUND: 404,
    ErrorCategory.OBJECT_NOT_FOUND: 404,
    ErrorCategory.PASSWORD_REQUIRED: 401,
    ErrorCategory.INCORRECT_PASSWORD: 401,
    ErrorCategory.ACCESS_DENIED: 403,
    ErrorCategory.FORBIDDEN: 403,
    ErrorCategory.PREVIEW_DISABLED: 403,
    ErrorCategory.CEILING_EXCEEDS_QUOTA_LIMIT: 400,
    ErrorCategory.REGISTRATION_CLOSED: 403,
    ErrorCategory.ACCOUNT_EXISTS: 409,
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.UNAUTHENTICATED: 401,
    ErrorCategory.SYSTEM_ERROR: 500,
}

TRUE_VALUES = ("1", "true", "yes", "on")


def result_error_response(result: OperationResult, context: Optional[dict] = None):
    """Map a failed result to a structured error response."""
    return create_error_response(
        result.error_category,
        context=context,
        status_code=STATUS_CODES.get(result.error_category, 400),
        message=result.error_message,
    )


def unauthenticated_response():
    return create_error_response(ErrorCategory.UNAUTHENTICATED, status_code=401)


def require_caller():
    """Return (caller, None) or (None, error_response)."""
    caller = get_caller()
    if caller is None:
        return None, unauthenticated_response()
    return caller, None


def require_admin():
    caller, error = require_caller()
    if error:
        return None, error
    if not caller.is_admin:
        return None, create_error_response(
            ErrorCategory.FORBIDDEN, message="Admin access required.", status_code=403
        )
    return caller, None


def read_password() -> Optional[str]:
    data = request.get_json(silent=True) or {}
    password = data.get("password") or request.form.get("password")
    return password or None


def stream_response(result, as_attachment: bool) -> Response:
    """
    Build a streamed response around an ObjectStream.

    Werkzeug closes the response iterable when the transfer ends or the
    client disconnects, which runs the stream's close hook.
    """
    stored = result.stored_object
    disposition = "attachment" if as_attachment else "inline"
    ascii_name = stored.filename.encode("ascii", "ignore").decode("ascii") or "file"
    ascii_name = ascii_name.replace('"', "")
    headers = {
        "Content-Disposition": (
            f'{disposition}; filename="{ascii_name}"; '
            f"filename*=UTF-8''{quote(stored.filename)}"
        ),
        "Content-Length": str(stored.size),
        "Cache-Control": "no-store",
    }
    return Response(
        result.stream,
        mimetype="application/octet-stream",
        headers=headers,
        direct_passthrough=True,
    )


def owned_file_view(stored: StoredObject) -> dict:
    data = stored.to_info().to_dict()
    data["created_at"] = stored.created_at.isoformat()
    return data


# =============================================================================
# Files Namespace - Upload, lookup, download and delete
# =============================================================================

files_ns = Namespace("files", description="Stored file operations")


@files_ns.route("/")
class Files(Resource):
    """Upload and list files"""

    @files_ns.doc("upload_file", params={
        "file": {"in": "formData", "type": "file", "required": True},
        "expiration": {"in": "formData", "type": "string",
                       "enum": ["permanent", "1m", "1h", "24h", "7d"]},
        "password": {"in": "formData", "type": "string"},
        "single_use": {"in": "formData", "type": "boolean"},
    })
    @files_ns.response(201, "Created", upload_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(401, "Unauthenticated", error_response)
    @files_ns.response(413, "Too Large", error_response)
    def post(self):
        """
        Upload a file

        Multipart upload. The file is admitted against the caller's quota
        and the current file-size ceiling before any byte is stored.
        """
        caller, error = require_caller()
        if error:
            return error

        upload = request.files.get("file")
        if upload is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, message="No file uploaded.", status_code=400
            )

        stream = upload.stream
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)

        options = UploadOptions.from_preset(
            expiration=request.form.get("expiration"),
            password=request.form.get("password"),
            single_use=request.form.get("single_use", "").lower() in TRUE_VALUES,
        )

        result = current_app.share_service.upload(
            caller.user_id, stream, size, upload.filename or "file", options
        )
        if not result.success:
            return result_error_response(result)

        stored = result.stored_object
        return stored.to_info().to_dict(), 201

    @files_ns.doc("list_files")
    @files_ns.response(200, "Success", file_list_response)
    @files_ns.response(401, "Unauthenticated", error_response)
    def get(self):
        """List the caller's live files"""
        caller, error = require_caller()
        if error:
            return error

        account = current_app.account_service.get_account(caller.user_id)
        if account is None:
            return create_error_response(ErrorCategory.ACCOUNT_NOT_FOUND, status_code=404)

        files = current_app.share_service.list_files(caller.user_id)
        default_quota = current_app.account_service.default_quota()
        return {
            "files": [owned_file_view(f) for f in files],
            "storage_used": account.storage_used,
            "storage_quota": account.effective_quota(default_quota),
            "storage_remaining": account.remaining_quota(default_quota),
        }, 200


@files_ns.route("/<string:object_id>")
@files_ns.param("object_id", "The public file token")
class FileItem(Resource):
    """Public metadata and owner delete"""

    @files_ns.doc("get_file_info")
    @files_ns.response(200, "Success", file_info_response)
    @files_ns.response(404, "Not Found", error_response)
    def get(self, object_id):
        """Get public file information (name, size, protection flags)"""
        result = current_app.share_service.get_info(object_id)
        if not result.success:
            return result_error_response(result)
        return result.info.to_dict(), 200

    @files_ns.doc("delete_file")
    @files_ns.response(204, "Deleted")
    @files_ns.response(403, "Forbidden", error_response)
    @files_ns.response(404, "Not Found", error_response)
    def delete(self, object_id):
        """Delete a file (owner only)"""
        caller, error = require_caller()
        if error:
            return error

        result = current_app.share_service.delete(object_id, caller.user_id)
        if not result.success:
            return result_error_response(result)
        return "", 204


@files_ns.route("/<string:object_id>/download")
@files_ns.param("object_id", "The public file token")
class FileDownload(Resource):
    """Download file content"""

    @files_ns.doc("download_file")
    @files_ns.expect(password_request)
    @files_ns.response(200, "File content")
    @files_ns.response(401, "Password Required", error_response)
    @files_ns.response(403, "Access Denied", error_response)
    @files_ns.response(404, "Not Found", error_response)
    def post(self, object_id):
        """
        Download a file

        Single-use files are removed as the download starts; a second
        request receives 404.
        """
        result = current_app.share_service.download(object_id, read_password())
        if not result.success:
            return result_error_response(result)
        return stream_response(result, as_attachment=True)


@files_ns.route("/<string:object_id>/preview")
@files_ns.param("object_id", "The public file token")
class FilePreview(Resource):
    """Inline preview"""

    @files_ns.doc("preview_file")
    @files_ns.expect(password_request)
    @files_ns.response(200, "File content")
    @files_ns.response(403, "Preview Disabled", error_response)
    @files_ns.response(404, "Not Found", error_response)
    def post(self, object_id):
        """Preview a file inline (not available for single-use files)"""
        result = current_app.share_service.preview(object_id, read_password())
        if not result.success:
            return result_error_response(result)
        return stream_response(result, as_attachment=False)


# =============================================================================
# Config Namespace - Public limits
# =============================================================================

config_ns = Namespace("config", description="Public configuration")


@config_ns.route("/")
class PublicConfig(Resource):
    @config_ns.doc("get_public_config")
    @config_ns.marshal_with(public_config_response, code=200)
    def get(self):
        """Get upload limits shown to clients"""
        return current_app.system_service.get_public_config(), 200


# =============================================================================
# Accounts Namespace - Self-registration
# =============================================================================

accounts_ns = Namespace("accounts", description="Account registration")


@accounts_ns.route("/")
class Accounts(Resource):
    @accounts_ns.doc("register_account")
    @accounts_ns.response(201, "Created", account_response)
    @accounts_ns.response(403, "Registration Closed", error_response)
    @accounts_ns.response(409, "Account Exists", error_response)
    def post(self):
        """Register the calling identity"""
        caller, error = require_caller()
        if error:
            return error

        result = current_app.account_service.register(caller.user_id)
        if not result.success:
            return result_error_response(result)
        return result.account.to_dict(), 201


@accounts_ns.route("/me")
class CurrentAccount(Resource):
    @accounts_ns.doc("get_current_account")
    @accounts_ns.response(200, "Success", account_response)
    @accounts_ns.response(404, "Not Found", error_response)
    def get(self):
        """Get the calling account"""
        caller, error = require_caller()
        if error:
            return error

        account = current_app.account_service.get_account(caller.user_id)
        if account is None:
            return create_error_response(ErrorCategory.ACCOUNT_NOT_FOUND, status_code=404)
        return account.to_dict(), 200


# =============================================================================
# Admin Namespace - Configuration, accounts and reset
# =============================================================================

admin_ns = Namespace("admin", description="Administrative operations")


@admin_ns.route("/setup")
class AdminSetup(Resource):
    @admin_ns.doc("setup_admin")
    @admin_ns.response(201, "Created", account_response)
    @admin_ns.response(403, "Admin Exists", error_response)
    def post(self):
        """Create the first administrator account"""
        caller, error = require_caller()
        if error:
            return error

        result = current_app.account_service.setup_admin(caller.user_id)
        if not result.success:
            return result_error_response(result)
        return result.account.to_dict(), 201


@admin_ns.route("/config")
class AdminConfig(Resource):
    @admin_ns.doc("get_config")
    @admin_ns.response(200, "Success", config_response)
    @admin_ns.response(403, "Forbidden", error_response)
    def get(self):
        """Get the full system configuration"""
        _, error = require_admin()
        if error:
            return error
        return current_app.system_service.get_config().to_dict(), 200

    @admin_ns.doc("update_config")
    @admin_ns.expect(config_update_request)
    @admin_ns.response(200, "Success", config_response)
    @admin_ns.response(400, "Rejected", error_response)
    @admin_ns.response(403, "Forbidden", error_response)
    def put(self):
        """
        Update the system configuration

        When max_file_size_linked is on, the max file size follows 95% of
        the default quota and any supplied value is ignored.
        """
        _, error = require_admin()
        if error:
            return error

        data = request.get_json(silent=True) or {}
        try:
            update = SystemConfigUpdate.from_megabytes(
                default_storage_quota_mb=data.get("default_storage_quota_mb"),
                max_file_size_mb=data.get("max_file_size_mb"),
                max_file_size_linked=_optional_bool(data, "max_file_size_linked"),
                registration_allowed=_optional_bool(data, "registration_allowed"),
            )
        except (TypeError, ValueError):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                message="Quota and max file size must be whole megabytes.",
                status_code=400,
            )

        result = current_app.system_service.update_config(update)
        if not result.success:
            context = None
            if result.max_allowed is not None:
                context = {
                    "max_allowed": result.max_allowed,
                    "max_allowed_mb": result.max_allowed // BYTES_PER_MB,
                }
            return result_error_response(result, context)
        return result.config.to_dict(), 200


@admin_ns.route("/accounts")
class AdminAccounts(Resource):
    @admin_ns.doc("list_accounts")
    @admin_ns.response(200, "Success", [account_response])
    @admin_ns.response(403, "Forbidden", error_response)
    def get(self):
        """List every account"""
        _, error = require_admin()
        if error:
            return error
        return [a.to_dict() for a in current_app.account_service.list_accounts()], 200


@admin_ns.route("/accounts/<string:account_id>/quota")
@admin_ns.param("account_id", "Account identity")
class AdminAccountQuota(Resource):
    @admin_ns.doc("set_account_quota")
    @admin_ns.expect(quota_request)
    @admin_ns.response(200, "Success", account_response)
    @admin_ns.response(404, "Not Found", error_response)
    def patch(self, account_id):
        """Set or clear an account's quota override"""
        _, error = require_admin()
        if error:
            return error

        data = request.get_json(silent=True) or {}
        quota_mb = data.get("quota_mb")
        try:
            quota_bytes = None if quota_mb in (None, "") else int(quota_mb) * BYTES_PER_MB
        except (TypeError, ValueError):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                message="quota_mb must be a whole number of megabytes or null.",
                status_code=400,
            )

        result = current_app.account_service.set_quota_override(account_id, quota_bytes)
        if not result.success:
            return result_error_response(result)
        return result.account.to_dict(), 200


@admin_ns.route("/reset")
class AdminReset(Resource):
    @admin_ns.doc("reset_system")
    @admin_ns.response(200, "Success", reset_response)
    @admin_ns.response(403, "Forbidden", error_response)
    def post(self):
        """Delete every file, account and setting"""
        caller, error = require_admin()
        if error:
            return error
        return current_app.system_service.reset(caller.user_id), 200


def _optional_bool(data: dict, key: str) -> Optional[bool]:
    if key not in data or data[key] is None:
        return None
    value = data[key]
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


# =============================================================================
# System Namespace - Health
# =============================================================================

system_ns = Namespace("system", description="System health operations")


@system_ns.route("/health")
class Health(Resource):
    @system_ns.doc("health_check")
    @system_ns.response(200, "Healthy", health_response)
    @system_ns.response(503, "Degraded", health_response)
    def get(self):
        """Check Redis, Celery and expiry listener status"""
        from burnbox.app_factory import get_health_status

        return get_health_status(current_app)
