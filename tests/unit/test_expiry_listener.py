"""
Unit Tests for the Expiry Listener

Drives the listener thread with an in-memory notification source.
"""

import io
import time
from unittest.mock import Mock

import pytest

from burnbox.application.expiry_listener import ExpiryListener
from burnbox.domain.errors import ExpirySignalError
from burnbox.domain.objects.expiry_signal import IExpiryNotificationSource
from burnbox.domain.objects.value_objects import UploadOptions
from tests.conftest import OWNER_ID
from tests.fixtures.mock_repositories import QueueNotificationSource


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class FlakySource(IExpiryNotificationSource):
    """Fails on the first subscription, then delivers one key."""

    def __init__(self):
        self.attempts = 0
        self.inner = QueueNotificationSource()

    def listen(self):
        self.attempts += 1
        if self.attempts == 1:
            raise ExpirySignalError("connection reset")
        return self.inner.listen()

    def close(self):
        self.inner.close()


class TestExpiryListener:

    def test_dispatches_each_notification(self):
        source = QueueNotificationSource()
        handler = Mock()
        listener = ExpiryListener(source, handler)
        listener.start()
        try:
            source.push("first")
            source.push("second")
            assert wait_until(lambda: listener.processed == 2)
        finally:
            listener.stop()

        assert [c.args[0] for c in handler.call_args_list] == ["first", "second"]
        assert not listener.running

    def test_handler_failure_does_not_stop_loop(self):
        source = QueueNotificationSource()
        handler = Mock(side_effect=[RuntimeError("boom"), None])
        listener = ExpiryListener(source, handler)
        listener.start()
        try:
            source.push("bad")
            source.push("good")
            assert wait_until(lambda: listener.processed == 2)
        finally:
            listener.stop()

        assert handler.call_count == 2

    def test_source_failure_resubscribes(self):
        source = FlakySource()
        handler = Mock()
        listener = ExpiryListener(source, handler, reconnect_delay=0.01)
        listener.start()
        try:
            source.inner.push("late")
            assert wait_until(lambda: handler.call_count == 1)
        finally:
            listener.stop()

        assert source.attempts == 2

    def test_start_is_idempotent(self):
        listener = ExpiryListener(QueueNotificationSource(), Mock())
        listener.start()
        thread = listener._thread
        try:
            listener.start()
            assert listener._thread is thread
        finally:
            listener.stop()

    def test_restart_after_stop_is_refused(self):
        listener = ExpiryListener(QueueNotificationSource(), Mock())
        listener.start()
        listener.stop()

        with pytest.raises(RuntimeError):
            listener.start()

        assert listener.running is False

    def test_end_to_end_expiry_cleanup(self, container, notification_source, account_repo,
                                       owner):
        from burnbox.application.share_service import ShareService

        share_service = container.resolve(ShareService)
        data = b"temporary"
        stored = share_service.upload(
            OWNER_ID, io.BytesIO(data), len(data), "tmp.txt", UploadOptions(ttl_seconds=60)
        ).stored_object

        listener = container.resolve(ExpiryListener)
        listener.start()
        try:
            # Duplicate delivery must clean up once
            notification_source.push(stored.object_id)
            notification_source.push(stored.object_id)
            assert wait_until(lambda: listener.processed == 2)
        finally:
            listener.stop()

        assert account_repo.storage_used(OWNER_ID) == 0
        assert account_repo.count_calls("release") == 1
        assert not share_service.get_info(stored.object_id).success
