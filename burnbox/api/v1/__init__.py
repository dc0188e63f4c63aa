"""
API v1 - BurnBox REST API

Versioned endpoints with OpenAPI/Swagger documentation.
"""

import logging
import os

from flask import Blueprint
from flask_restx import Api

from burnbox.domain.errors import DomainError, ErrorCategory, create_error_response

logger = logging.getLogger(__name__)

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

api = Api(
    api_v1_bp,
    version="1.0",
    title="BurnBox API",
    description="Expiring, password-protected and burn-after-reading file sharing",
    doc="/docs",  # Swagger UI at /api/v1/docs
)


@api.errorhandler(DomainError)
def handle_domain_error(error):
    """Infrastructure faults surface as a generic 500."""
    logger.error(f"Unhandled infrastructure error: {error}", exc_info=True)
    return create_error_response(ErrorCategory.SYSTEM_ERROR, str(error), status_code=500)


# Import namespaces after api is created to avoid circular imports
from .namespaces import accounts_ns, admin_ns, config_ns, files_ns, system_ns  # noqa: E402

api.add_namespace(files_ns, path="/files")
api.add_namespace(config_ns, path="/config")
api.add_namespace(accounts_ns, path="/accounts")
api.add_namespace(admin_ns, path="/admin")
api.add_namespace(system_ns, path="/system")
