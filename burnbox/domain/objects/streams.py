"""
Object Streams

Chunked readers handed to callers on download, with a close hook that runs
exactly once whatever happens to the transfer.
"""

import threading
from typing import BinaryIO, Callable, Iterator, Optional

CHUNK_SIZE_BYTES = 64 * 1024


class ObjectStream:
    """
    Iterable over the bytes of a stored object.

    The on_close hook receives True if every byte was read, False otherwise,
    and runs once: when iteration ends, when close() is called, or when the
    stream is used as a context manager and the block exits. Web servers
    close response iterables on client disconnect, so the hook also runs for
    aborted transfers.
    """

    def __init__(
        self,
        source: BinaryIO,
        size: int,
        on_close: Optional[Callable[[bool], None]] = None,
        chunk_size: int = CHUNK_SIZE_BYTES,
    ):
        self._source = source
        self.size = size
        self.chunk_size = chunk_size
        self._on_close = on_close
        self._completed = False
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def completed(self) -> bool:
        return self._completed

    def __iter__(self) -> Iterator[bytes]:
        try:
            while True:
                chunk = self._source.read(self.chunk_size)
                if not chunk:
                    self._completed = True
                    break
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._source.close()
        finally:
            if self._on_close is not None:
                self._on_close(self._completed)

    def __enter__(self) -> 'ObjectStream':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
