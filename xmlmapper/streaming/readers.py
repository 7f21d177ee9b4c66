"""Byte sources that deliver a document in chunks.

Each reader calls ``on_data(chunk)`` for every chunk, and ``on_complete()``
once all data is delivered. Reading can happen in the calling thread,
or in a background thread:

.. code-block:: python

    reader = URLReader("https://example.com/feed.xml", on_data=..., on_complete=...)
    reader.start(background=True)
    ...
    reader.join()

A cancelled reader stops delivering chunks, and never calls ``on_complete()``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from urllib.request import Request, urlopen

from xmlmapper import conf

logger = logging.getLogger(__name__)

__all__ = (
    "ByteSource",
    "FileReader",
    "URLReader",
)


class ByteSource:
    """Base class for all readers."""

    def __init__(
        self,
        on_data: Callable[[bytes], None],
        on_complete: Callable[[], None],
        chunk_size: int | None = None,
    ):
        self.on_data = on_data
        self.on_complete = on_complete
        self.chunk_size = chunk_size or conf.XMLMAPPER_CHUNK_SIZE
        self.bytes_read = 0
        self.exception = None
        self._cancelled = threading.Event()
        self._thread = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def iter_chunks(self) -> Iterator[bytes]:
        """Provide the raw data of the source."""
        raise NotImplementedError()

    def start(self, background=False):
        """Start delivering the data.
        In the background mode, this returns directly and :meth:`join` waits for completion.
        """
        if self._thread is not None:
            raise RuntimeError(f"{self.__class__.__name__} can only be started once.")

        if background:
            self._thread = threading.Thread(
                target=self._run_background, name=f"xmlmapper-{self}", daemon=True
            )
            self._thread.start()
        else:
            self.read()

    def read(self):
        """Deliver all chunks in the current thread."""
        for chunk in self.iter_chunks():
            if self.cancelled:
                logger.debug("Reading %s cancelled after %d bytes", self, self.bytes_read)
                return

            self.bytes_read += len(chunk)
            self.on_data(chunk)

        if self.cancelled:
            return
        self.on_complete()

    def _run_background(self):
        try:
            self.read()
        except Exception as e:
            # Keep the error for join(), as the thread can't raise it anywhere.
            logger.exception("Reading %s failed: %s", self, e)
            self.exception = e

    def cancel(self):
        """Stop delivering chunks. No completion is reported."""
        self._cancelled.set()

    def join(self, timeout: float | None = None):
        """Wait for the background reader to complete, and raise any errors it had."""
        if self._thread is not None:
            self._thread.join(timeout)
        if self.exception is not None:
            raise self.exception


class FileReader(ByteSource):
    """Read the document from a local file."""

    def __init__(self, path: str | Path, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.path = Path(path)

    def iter_chunks(self) -> Iterator[bytes]:
        with open(self.path, "rb") as f:
            while chunk := f.read(self.chunk_size):
                yield chunk

    def __str__(self):
        return str(self.path)


class URLReader(ByteSource):
    """Read the document from the network, while it's being downloaded."""

    user_agent = "xmlmapper"

    def __init__(self, url: str, *args, timeout: float | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.url = url
        self.timeout = timeout or conf.XMLMAPPER_NETWORK_TIMEOUT

    def iter_chunks(self) -> Iterator[bytes]:
        request = Request(self.url, headers={"User-Agent": self.user_agent})
        logger.debug("Fetching %s", self.url)
        with urlopen(request, timeout=self.timeout) as response:  # noqa: S310
            while chunk := response.read(self.chunk_size):
                yield chunk

    def __str__(self):
        return self.url
