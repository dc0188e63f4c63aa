"""
Application Factory

Creates and configures the Flask application with all dependencies.
Tests pass a prebuilt DependencyContainer to run against in-memory stores.
"""

import logging
import os
from datetime import datetime
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from redis.exceptions import RedisError

from burnbox.application.account_service import AccountService
from burnbox.application.dependency_container import DependencyContainer
from burnbox.application.event_publisher import EventPublisher
from burnbox.application.expiry_listener import ExpiryListener
from burnbox.application.share_service import ShareService
from burnbox.application.system_service import SystemService
from burnbox.config.celery_config import make_celery
from burnbox.config.redis_config import (
    enable_expiry_notifications,
    get_redis_client,
    get_redis_config,
    get_redis_repository,
    init_redis,
    redis_health_check,
)
from burnbox.config.storage_config import create_storage_repository
from burnbox.domain.accounts.repositories import AccountRepository
from burnbox.domain.accounts.services import AccountManager, AdmissionController
from burnbox.domain.objects.expiry_signal import IExpiryNotificationSource, IExpirySignal
from burnbox.domain.objects.repositories import ObjectRepository
from burnbox.domain.objects.services import ObjectLifecycleManager
from burnbox.domain.objects.storage_repository import IObjectStorageRepository
from burnbox.domain.system_config.repositories import SystemConfigRepository
from burnbox.domain.system_config.services import SystemConfigManager
from burnbox.infrastructure.redis_account_repository import RedisAccountRepository
from burnbox.infrastructure.redis_expiry_signal import (
    RedisExpiryNotificationSource,
    RedisExpirySignal,
)
from burnbox.infrastructure.redis_object_repository import RedisObjectRepository
from burnbox.infrastructure.redis_system_config_repository import RedisSystemConfigRepository

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.expiry_listener_enabled = (
            os.getenv("EXPIRY_LISTENER_ENABLED", "true").lower() == "true"
        )


def create_app(config: Optional[AppConfig] = None,
               container: Optional[DependencyContainer] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Prebuilt service container; Redis-backed services are
            built when None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    app = Flask(__name__)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization", "X-User-Id", "X-User-Role"],
                "expose_headers": ["Content-Type", "Content-Disposition"],
                "max_age": 3600,
            }
        },
    )

    if container is None:
        _initialize_infrastructure(app)
        container = build_redis_container()
    else:
        app.celery = None

    _attach_services(app, container)
    _register_blueprints(app, config)
    _register_health_endpoint(app)

    return app


def build_container(
    account_repository: AccountRepository,
    object_repository: ObjectRepository,
    config_repository: SystemConfigRepository,
    storage_repository: IObjectStorageRepository,
    expiry_signal: IExpirySignal,
    notification_source: Optional[IExpiryNotificationSource] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> DependencyContainer:
    """
    Wire domain and application services over the given adapters.

    Args:
        account_repository: Account store
        object_repository: Object metadata store
        config_repository: Configuration singleton store
        storage_repository: Blob store
        expiry_signal: TTL trigger registry
        notification_source: Inbound expiry transport; no listener without it
        clock: Time source for the lifecycle manager

    Returns:
        Container with every service registered as a singleton
    """
    container = DependencyContainer()

    container.register_singleton(AccountRepository, account_repository)
    container.register_singleton(ObjectRepository, object_repository)
    container.register_singleton(SystemConfigRepository, config_repository)
    container.register_singleton(IObjectStorageRepository, storage_repository)
    container.register_singleton(IExpirySignal, expiry_signal)

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    # Domain services
    config_manager = SystemConfigManager(config_repository)
    admission_controller = AdmissionController(account_repository)
    account_manager = AccountManager(account_repository)
    lifecycle_manager = ObjectLifecycleManager(
        object_repository,
        storage_repository,
        expiry_signal,
        admission_controller,
        clock=clock,
    )

    container.register_singleton(SystemConfigManager, config_manager)
    container.register_singleton(AdmissionController, admission_controller)
    container.register_singleton(AccountManager, account_manager)
    container.register_singleton(ObjectLifecycleManager, lifecycle_manager)

    # Application services
    share_service = ShareService(
        admission_controller, lifecycle_manager, config_manager, event_publisher
    )
    account_service = AccountService(account_manager, config_manager)
    system_service = SystemService(
        config_manager,
        config_repository,
        account_repository,
        object_repository,
        storage_repository,
        expiry_signal,
        event_publisher,
    )

    container.register_singleton(ShareService, share_service)
    container.register_singleton(AccountService, account_service)
    container.register_singleton(SystemService, system_service)

    if notification_source is not None:
        listener = ExpiryListener(notification_source, share_service.handle_expiry)
        container.register_singleton(ExpiryListener, listener)

    return container


def build_redis_container() -> DependencyContainer:
    """Build the production container over Redis and the local filesystem."""
    redis_repo = get_redis_repository()
    redis_config = get_redis_config()

    return build_container(
        account_repository=RedisAccountRepository(redis_repo),
        object_repository=RedisObjectRepository(redis_repo),
        config_repository=RedisSystemConfigRepository(redis_repo),
        storage_repository=create_storage_repository(),
        expiry_signal=RedisExpirySignal(redis_repo),
        notification_source=RedisExpiryNotificationSource(
            get_redis_client(), db=redis_config.db, key_prefix=redis_config.key_prefix
        ),
    )


def _initialize_infrastructure(app: Flask) -> None:
    """
    Initialize Redis and Celery.

    Neither opens a connection here; the first command does.
    """
    init_redis()
    logger.info("Redis initialized")

    app.celery = make_celery(app)
    logger.info("Celery initialized")


def _attach_services(app: Flask, container: DependencyContainer) -> None:
    """Attach the container and the services routes use most."""
    app.container = container
    app.share_service = container.resolve(ShareService)
    app.account_service = container.resolve(AccountService)
    app.system_service = container.resolve(SystemService)
    app.expiry_listener = (
        container.resolve(ExpiryListener) if container.is_registered(ExpiryListener) else None
    )


def start_expiry_listener(app: Flask) -> bool:
    """
    Enable keyspace notifications and start the listener thread.

    Returns:
        True if a listener was started
    """
    listener = getattr(app, "expiry_listener", None)
    if listener is None:
        return False

    try:
        enable_expiry_notifications(get_redis_client())
    except RedisError as e:
        logger.warning(f"Could not reach Redis to configure notifications: {e}")

    listener.start()
    return True


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    from burnbox.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)
    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of Redis, Celery and the expiry listener.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "redis": "unknown",
        "celery": "unknown",
        "expiry_listener": "unknown",
    }

    if redis_health_check():
        health_status["redis"] = "connected"
    else:
        health_status["redis"] = "disconnected"
        health_status["status"] = "degraded"

    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"

    listener = getattr(app, "expiry_listener", None)
    if listener is None:
        health_status["expiry_listener"] = "not_configured"
    elif listener.running:
        health_status["expiry_listener"] = "running"
    else:
        health_status["expiry_listener"] = "stopped"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        health_status, status_code = get_health_status(app)
        return jsonify(health_status), status_code
