"""
Expiry Listener

Background thread that consumes expiry notifications and hands each
expired object ID to the expiry handler.
"""

import logging
import threading
from typing import Any, Callable, Optional

from burnbox.domain.errors import DomainError
from burnbox.domain.objects.expiry_signal import IExpiryNotificationSource

logger = logging.getLogger(__name__)


class ExpiryListener:
    """
    Daemon thread driving an IExpiryNotificationSource.

    A failing handler is logged and the loop moves on to the next key. A
    failing source is re-subscribed with exponential backoff until stop()
    is called.
    """

    def __init__(
        self,
        source: IExpiryNotificationSource,
        handler: Callable[[str], Any],
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
    ):
        """
        Args:
            source: Notification transport
            handler: Called with each expired object ID
            reconnect_delay: Initial wait before re-subscribing after a failure
            max_reconnect_delay: Upper bound for the backoff
        """
        self.source = source
        self.handler = handler
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self.processed = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Start the listener thread. A no-op if it is already running.

        Raises:
            RuntimeError: If stop() has been called; the source is closed
        """
        if self._stop.is_set():
            raise RuntimeError("Expiry listener cannot be restarted after stop()")
        if self.running:
            return
        self._thread = threading.Thread(
            target=self.run, name="burnbox-expiry-listener", daemon=True
        )
        self._thread.start()
        logger.info("Expiry listener started")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        self.source.close()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Expiry listener stopped")

    def run(self) -> None:
        delay = self.reconnect_delay
        while not self._stop.is_set():
            try:
                for object_id in self.source.listen():
                    delay = self.reconnect_delay
                    self._dispatch(object_id)
                    if self._stop.is_set():
                        break
            except DomainError as e:
                logger.error(f"Expiry notification source failed: {e}")

            if self._stop.wait(delay):
                break
            delay = min(delay * 2, self.max_reconnect_delay)

    def _dispatch(self, object_id: str) -> None:
        try:
            self.handler(object_id)
        except Exception as e:
            logger.error(f"Expiry handler failed for {object_id[:8]}: {e}", exc_info=True)
        finally:
            self.processed += 1
