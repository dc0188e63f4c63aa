"""
Shared pytest fixtures and configuration for the BurnBox test suite.

This module provides:
- Hypothesis configuration for property-based testing
- In-memory repositories wired into the domain services
- A Flask test client over the same in-memory stores
"""

import io

import pytest
from hypothesis import HealthCheck, Phase, settings

from burnbox.app_factory import build_container, create_app
from burnbox.domain.accounts.entities import Account, AccountRole
from burnbox.domain.accounts.services import AccountManager, AdmissionController
from burnbox.domain.objects.services import ObjectLifecycleManager
from burnbox.domain.objects.value_objects import UploadOptions
from burnbox.domain.system_config.entities import BYTES_PER_MB, SystemConfig
from burnbox.domain.system_config.services import SystemConfigManager
from burnbox.infrastructure.local_object_storage_repository import LocalObjectStorageRepository
from tests.fixtures.mock_repositories import (
    FakeClock,
    MockAccountRepository,
    MockExpirySignal,
    MockObjectRepository,
    MockSystemConfigRepository,
    QueueNotificationSource,
)

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")

MB = BYTES_PER_MB
OWNER_ID = "alice"


def make_config(quota_mb: int = 10, linked: bool = True, **overrides) -> SystemConfig:
    """Build a normalised configuration with the given default quota."""
    config = SystemConfig(
        max_file_size=quota_mb * MB,
        default_storage_quota=quota_mb * MB,
        max_file_size_linked=linked,
        **overrides,
    )
    return config.normalized()


def store(admission, lifecycle, config, owner_id, data: bytes,
          options: UploadOptions = None, filename: str = "report.pdf"):
    """Admit and create an object; returns (admission_result, upload_result)."""
    options = options or UploadOptions()
    admitted = admission.try_admit(owner_id, len(data), config)
    if not admitted.admitted:
        return admitted, None
    return admitted, lifecycle.create(admitted, io.BytesIO(data), filename, options)


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Controllable clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def system_config() -> SystemConfig:
    """Default quota 10MB, linked ceiling 9.5MB."""
    return make_config(10)


@pytest.fixture
def account_repo():
    return MockAccountRepository()


@pytest.fixture
def object_repo():
    return MockObjectRepository()


@pytest.fixture
def config_repo(system_config):
    return MockSystemConfigRepository(system_config)


@pytest.fixture
def expiry_signal(clock):
    return MockExpirySignal(clock)


@pytest.fixture
def storage(tmp_path):
    """Blob store rooted in a per-test temporary directory."""
    return LocalObjectStorageRepository(str(tmp_path / "blobs"))


@pytest.fixture
def owner(account_repo) -> Account:
    """A registered user account with no override."""
    account = Account.create(OWNER_ID)
    account_repo.create(account)
    return account


@pytest.fixture
def admission(account_repo):
    return AdmissionController(account_repo)


@pytest.fixture
def account_manager(account_repo):
    return AccountManager(account_repo)


@pytest.fixture
def config_manager(config_repo):
    return SystemConfigManager(config_repo)


@pytest.fixture
def lifecycle(object_repo, storage, expiry_signal, admission, clock):
    return ObjectLifecycleManager(
        object_repo, storage, expiry_signal, admission, clock=clock
    )


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def notification_source():
    return QueueNotificationSource()


@pytest.fixture
def container(account_repo, object_repo, config_repo, storage, expiry_signal,
              notification_source, clock):
    return build_container(
        account_repository=account_repo,
        object_repository=object_repo,
        config_repository=config_repo,
        storage_repository=storage,
        expiry_signal=expiry_signal,
        notification_source=notification_source,
        clock=clock,
    )


@pytest.fixture
def app(container):
    flask_app = create_app(container=container)
    flask_app.config["TESTING"] = True
    yield flask_app
    if flask_app.expiry_listener is not None and flask_app.expiry_listener.running:
        flask_app.expiry_listener.stop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(account_repo) -> Account:
    account = Account.create("root", AccountRole.ADMIN)
    account_repo.create(account)
    return account


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require a Redis server)"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    """
    for item in items:
        path = str(item.fspath)
        if "/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path:
            item.add_marker(pytest.mark.integration)
