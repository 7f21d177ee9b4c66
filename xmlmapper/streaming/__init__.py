"""Streaming construction of entity graphs.

The :class:`StreamingParser` feeds the document in chunks to the tokenizer,
which passes the parse events to the :class:`StackBuilder`.
The domain models implement the :class:`Entity` protocol to receive their values.
"""

from .builder import BuilderState, StackBuilder
from .entity import Entity
from .parser import StreamingParser, stream_xml
from .readers import ByteSource, FileReader, URLReader

__all__ = (
    "BuilderState",
    "ByteSource",
    "Entity",
    "FileReader",
    "StackBuilder",
    "StreamingParser",
    "URLReader",
    "stream_xml",
)
