"""
Unit Tests for Quota Admission

Admission order, quota conservation across admits and deletes, and the
atomic reservation under concurrent uploads.
"""

import io
import threading

import pytest
from hypothesis import given
from hypothesis import strategies as st

from burnbox.domain.accounts.entities import Account
from burnbox.domain.accounts.services import AdmissionController
from burnbox.domain.errors import ErrorCategory
from burnbox.domain.objects.services import ObjectLifecycleManager
from burnbox.domain.objects.value_objects import UploadOptions
from burnbox.domain.system_config.entities import SystemConfig
from tests.conftest import MB, OWNER_ID, make_config, store
from tests.fixtures.mock_repositories import (
    FakeClock,
    MockAccountRepository,
    MockExpirySignal,
    MockObjectRepository,
    MockObjectStorageRepository,
)


class TestAdmissionChecks:
    """Rejections never mutate storage_used."""

    def test_empty_file_rejected(self, admission, owner, system_config, account_repo):
        result = admission.try_admit(OWNER_ID, 0, system_config)

        assert not result.admitted
        assert result.error_category == ErrorCategory.EMPTY_FILE
        assert account_repo.storage_used(OWNER_ID) == 0

    def test_unknown_account_rejected(self, admission, system_config):
        result = admission.try_admit("nobody", 100, system_config)

        assert result.error_category == ErrorCategory.ACCOUNT_NOT_FOUND

    def test_file_over_ceiling_rejected(self, admission, owner, account_repo):
        config = make_config(10)  # ceiling 9.5MB

        result = admission.try_admit(OWNER_ID, config.max_file_size + 1, config)

        assert result.error_category == ErrorCategory.FILE_TOO_LARGE
        assert "10MB" in result.error_message
        assert account_repo.count_calls("try_reserve") == 0

    def test_file_at_ceiling_admitted(self, admission, owner, system_config, account_repo):
        result = admission.try_admit(OWNER_ID, system_config.max_file_size, system_config)

        assert result.admitted
        assert account_repo.storage_used(OWNER_ID) == system_config.max_file_size

    def test_quota_override_takes_precedence(self, admission, owner, account_repo):
        config = make_config(10)
        account_repo.set_quota_override(OWNER_ID, 1 * MB)

        result = admission.try_admit(OWNER_ID, 2 * MB, config)

        assert result.error_category == ErrorCategory.QUOTA_EXCEEDED
        assert result.error_message == "Storage quota exceeded. Your quota is 1MB."
        assert result.quota == 1 * MB

    def test_zero_override_blocks_every_upload(self, admission, owner, account_repo,
                                               system_config):
        account_repo.set_quota_override(OWNER_ID, 0)

        result = admission.try_admit(OWNER_ID, 1, system_config)

        assert result.error_category == ErrorCategory.QUOTA_EXCEEDED

    def test_lost_reservation_reported_as_quota_exceeded(self, system_config):
        repo = MockAccountRepository()
        repo.create(Account.create(OWNER_ID))
        controller = AdmissionController(repo)
        repo.try_reserve = lambda *args: False

        result = controller.try_admit(OWNER_ID, 1 * MB, system_config)

        assert result.error_category == ErrorCategory.QUOTA_EXCEEDED

    def test_release_ignores_non_positive_sizes(self, admission, owner, account_repo):
        assert admission.release(OWNER_ID, 0) is False
        assert account_repo.count_calls("release") == 0


class TestQuotaScenario:
    """Quota 10MB: admit 6MB, reject a second 6MB, delete the first."""

    def test_admit_reject_delete(self, admission, lifecycle, owner, account_repo):
        config = make_config(10)
        payload = b"x" * (6 * MB)

        first_admission, first_upload = store(admission, lifecycle, config, OWNER_ID, payload)
        assert first_admission.admitted
        assert first_upload.success
        assert account_repo.storage_used(OWNER_ID) == 6 * MB

        second_admission, second_upload = store(admission, lifecycle, config, OWNER_ID, payload)
        assert second_upload is None
        assert second_admission.error_category == ErrorCategory.QUOTA_EXCEEDED
        assert account_repo.storage_used(OWNER_ID) == 6 * MB

        deleted = lifecycle.delete(first_upload.stored_object.object_id, OWNER_ID)
        assert deleted.success
        assert account_repo.storage_used(OWNER_ID) == 0


class TestConcurrentAdmission:
    """Two racing half-quota uploads into a half-quota headroom."""

    @pytest.mark.parametrize("run", range(5))
    def test_exactly_one_admit_wins(self, run):
        repo = MockAccountRepository()
        repo.create(Account.create(OWNER_ID))
        controller = AdmissionController(repo)
        config = SystemConfig(
            max_file_size=5 * MB, default_storage_quota=10 * MB, max_file_size_linked=False
        )
        assert controller.try_admit(OWNER_ID, 5 * MB, config).admitted

        barrier = threading.Barrier(2)
        results = []
        results_lock = threading.Lock()

        def admit():
            barrier.wait()
            outcome = controller.try_admit(OWNER_ID, 5 * MB, config)
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=admit) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for r in results if r.admitted) == 1
        assert [r.error_category for r in results if not r.admitted] == [
            ErrorCategory.QUOTA_EXCEEDED
        ]
        assert repo.storage_used(OWNER_ID) == 10 * MB

    def test_many_racing_admits_never_exceed_quota(self):
        repo = MockAccountRepository()
        repo.create(Account.create(OWNER_ID))
        controller = AdmissionController(repo)
        config = SystemConfig(
            max_file_size=1 * MB, default_storage_quota=10 * MB, max_file_size_linked=False
        )

        barrier = threading.Barrier(25)
        admitted = []

        def admit():
            barrier.wait()
            if controller.try_admit(OWNER_ID, 1 * MB, config).admitted:
                admitted.append(1)

        threads = [threading.Thread(target=admit) for _ in range(25)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(admitted) == 10
        assert repo.storage_used(OWNER_ID) == 10 * MB


operations = st.lists(
    st.one_of(
        st.tuples(st.just("upload"), st.integers(min_value=0, max_value=400)),
        st.tuples(st.just("delete"), st.integers(min_value=0, max_value=20)),
        st.tuples(st.just("expire"), st.integers(min_value=0, max_value=20)),
    ),
    max_size=40,
)


class TestQuotaConservation:
    """storage_used always equals the total size of live objects."""

    @given(ops=operations)
    def test_storage_used_matches_live_objects(self, ops):
        accounts = MockAccountRepository()
        accounts.create(Account.create(OWNER_ID))
        objects = MockObjectRepository()
        clock = FakeClock()
        controller = AdmissionController(accounts)
        manager = ObjectLifecycleManager(
            objects, MockObjectStorageRepository(), MockExpirySignal(clock), controller,
            clock=clock,
        )
        config = SystemConfig(
            max_file_size=300, default_storage_quota=1000, max_file_size_linked=False
        )

        live = []
        for action, value in ops:
            if action == "upload":
                admitted = controller.try_admit(OWNER_ID, value, config)
                if admitted.admitted:
                    result = manager.create(
                        admitted, io.BytesIO(b"a" * value), "f.bin", UploadOptions()
                    )
                    live.append(result.stored_object)
            elif live:
                target = live.pop(value % len(live))
                if action == "delete":
                    assert manager.delete(target.object_id, OWNER_ID).success
                else:
                    assert manager.on_expiry_fired(target.object_id) is not None

            used = accounts.storage_used(OWNER_ID)
            assert used == sum(obj.size for obj in live)
            assert 0 <= used <= config.default_storage_quota


class TestLeakedReservation:
    """A reservation whose upload never completed stays bounded."""

    def test_leak_counts_against_quota_and_never_goes_negative(self):
        repo = MockAccountRepository()
        repo.create(Account.create(OWNER_ID))
        controller = AdmissionController(repo)
        config = SystemConfig(
            max_file_size=4 * MB, default_storage_quota=10 * MB, max_file_size_linked=False
        )
        # Reserved, then the process died before the blob was written.
        assert controller.try_admit(OWNER_ID, 4 * MB, config).admitted

        barrier = threading.Barrier(10)
        admitted = []

        def admit():
            barrier.wait()
            if controller.try_admit(OWNER_ID, 1 * MB, config).admitted:
                admitted.append(1)

        threads = [threading.Thread(target=admit) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(admitted) == 6
        assert repo.storage_used(OWNER_ID) == 10 * MB

        controller.release(OWNER_ID, 20 * MB)
        assert repo.storage_used(OWNER_ID) == 0
