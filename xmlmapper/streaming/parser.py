"""Connect the readers, the tokenizer and the builder.

Usage:

.. code-block:: python

    def on_complete(builder):
        print(builder.root.title)

    parser = StreamingParser(Channel())
    parser.parse_url("https://example.com/feed.xml", on_complete)

The completion callback is the moment where the entity graph can be read.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from xmlmapper.parsers.xml import XMLTokenizer
from xmlmapper.streaming.builder import BuilderState, StackBuilder
from xmlmapper.streaming.entity import Entity
from xmlmapper.streaming.readers import ByteSource, FileReader, URLReader

logger = logging.getLogger(__name__)

__all__ = (
    "StreamingParser",
    "stream_xml",
)

Completion = Callable[[StackBuilder], None]


class StreamingParser:
    """Parse a document into an entity graph, while the data is being read.

    One parser handles one document at a time.
    Chunks may arrive from another thread, but they're applied one at a time.
    """

    def __init__(self, root: Entity, abort_on_error: bool | None = None):
        self.builder = StackBuilder(root, abort_on_error=abort_on_error)
        self.tokenizer = None
        self.reader: ByteSource | None = None
        # Reentrant, as the completion callback may start the next document.
        self._lock = threading.RLock()

    @property
    def root(self) -> Entity:
        return self.builder.root

    @property
    def is_done(self) -> bool:
        return self.builder.state is BuilderState.DONE

    def begin(self, completion: Completion | None = None):
        """Prepare for a new document. A reader of the previous document is cancelled."""
        with self._lock:
            if self.reader is not None:
                self.reader.cancel()
                self.reader = None

            if self.builder.state is BuilderState.BUILDING:
                logger.warning("Discarding the unfinished document of %r", self.root)

            self.builder.reset()
            self.builder.completion = completion
            self.tokenizer = XMLTokenizer(self.builder)

    def feed(self, chunk: bytes):
        """Parse the next chunk of the document."""
        with self._lock:
            if self.tokenizer is None:
                return  # cancelled
            self.tokenizer.feed(chunk)

    def close(self):
        """Finish the document, this calls the completion callback."""
        with self._lock:
            if self.tokenizer is None:
                return
            tokenizer = self.tokenizer
            self.tokenizer = None
            tokenizer.close()

    def parse_file(
        self, path: str | Path, completion: Completion | None = None, background=False
    ) -> FileReader:
        """Parse a local file."""
        return self._start_reader(FileReader, path, completion, background)

    def parse_url(
        self, url: str, completion: Completion | None = None, background=False
    ) -> URLReader:
        """Parse a document from the network."""
        return self._start_reader(URLReader, url, completion, background)

    def _start_reader(self, reader_class, source, completion, background):
        self.begin(completion)
        reader = reader_class(
            source,
            on_data=lambda chunk: self._reader_data(reader, chunk),
            on_complete=lambda: self._reader_complete(reader),
        )
        self.reader = reader
        reader.start(background=background)
        return reader

    def _reader_data(self, reader: ByteSource, chunk: bytes):
        with self._lock:
            if reader is not self.reader:
                return  # superseded by a newer document
            self.feed(chunk)

    def _reader_complete(self, reader: ByteSource):
        with self._lock:
            if reader is not self.reader:
                return
            self.close()

    def parse_bytes(self, data: bytes | str, completion: Completion | None = None) -> Entity:
        """Parse a document that's already in memory."""
        self.begin(completion)
        self.feed(data)
        self.close()
        return self.root

    def cancel(self):
        """Abandon the current document. The completion callback won't be called."""
        logger.debug("Cancelled parsing into %r", self.root)
        with self._lock:
            if self.reader is not None:
                self.reader.cancel()
                self.reader = None
            self.tokenizer = None
            self.builder.reset()


def stream_xml(data: bytes | str, root: Entity, abort_on_error: bool | None = None) -> Entity:
    """Build the entity graph for an in-memory document."""
    return StreamingParser(root, abort_on_error=abort_on_error).parse_bytes(data)
