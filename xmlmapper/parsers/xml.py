"""XML tokenizing for all incoming documents.

This uses the SAX parser from the standard library, hardened by defusedxml.
Incoming documents are fed in chunks, and each parse event is forwarded to
an :class:`EventTarget`. Two targets exist:

* the :class:`~xmlmapper.streaming.builder.StackBuilder` that builds an entity graph,
* the :class:`FragmentTreeBuilder` that builds an element tree for the decoder.

Unlike :mod:`xml.etree.ElementTree`, the events keep CDATA blocks apart from the text.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Iterable, Mapping
from xml.etree.ElementTree import Element, TreeBuilder
from xml.sax import SAXException
from xml.sax.handler import (
    ContentHandler,
    ErrorHandler,
    LexicalHandler,
    feature_external_ges,
    property_lexical_handler,
)

from defusedxml import DefusedXmlException
from defusedxml.expatreader import create_parser

from xmlmapper import conf
from xmlmapper.exceptions import ExternalParsingError

logger = logging.getLogger(__name__)

__all__ = (
    "EventTarget",
    "XMLTokenizer",
    "CDATAElement",
    "FragmentTreeBuilder",
    "parse_xml_from_string",
    "is_whitespace",
)

Attributes = typing.Union[Mapping[str, str], Iterable[tuple[str, str]]]


class EventTarget:
    """The events that the tokenizer delivers.

    Subclasses override the events they're interested in.
    """

    def start_element(self, name: str, attributes: Attributes):
        pass

    def characters(self, chunk: str):
        """Text content. A single text run can be delivered in multiple chunks."""

    def cdata(self, data: bytes):
        """The contents of a complete ``<![CDATA[...]]>`` block."""

    def end_element(self, name: str):
        pass

    def end_document(self):
        pass

    def parse_error(self, exception: Exception):
        pass


def is_whitespace(chunk: str) -> bool:
    """Tell whether the text only holds whitespace (or nothing at all)."""
    return not chunk or chunk.isspace()


class _SAXEventHandler(ContentHandler, LexicalHandler, ErrorHandler):
    """Translate the SAX callbacks into :class:`EventTarget` events."""

    def __init__(self, target: EventTarget):
        super().__init__()
        self.target = target
        self._cdata_chunks = None

    def startElement(self, name, attrs):
        self.target.start_element(name, dict(attrs.items()))

    def endElement(self, name):
        self.target.end_element(name)

    def characters(self, content):
        if self._cdata_chunks is not None:
            self._cdata_chunks.append(content)
        else:
            self.target.characters(content)

    def endDocument(self):
        self.target.end_document()

    def startCDATA(self):
        self._cdata_chunks = []

    def endCDATA(self):
        data = "".join(self._cdata_chunks).encode("utf-8")
        self._cdata_chunks = None
        self.target.cdata(data)

    def error(self, exception):
        self.target.parse_error(exception)

    def fatalError(self, exception):
        self.target.parse_error(exception)

    def warning(self, exception):
        logger.debug("XML parser warning: %s", exception)


class XMLTokenizer:
    """Push-based XML tokenizer.

    Feed the raw bytes in chunks using :meth:`feed`, and call :meth:`close`
    when all data is delivered. The events are passed to the target while parsing.
    """

    def __init__(self, target: EventTarget, forbid_dtd: bool | None = None):
        self.target = target
        self._parser = create_parser(
            forbid_dtd=conf.XMLMAPPER_FORBID_DTD if forbid_dtd is None else forbid_dtd,
            forbid_entities=True,
            # An external DTD subset (e.g. RSS 0.91) is accepted, but never fetched.
            forbid_external=False,
        )
        self._parser.setFeature(feature_external_ges, False)
        handler = _SAXEventHandler(target)
        self._parser.setContentHandler(handler)
        self._parser.setErrorHandler(handler)
        self._parser.setProperty(property_lexical_handler, handler)
        self._started = False

    def feed(self, data: bytes | str):
        """Parse the next chunk of the document."""
        self._started = True
        try:
            self._parser.feed(data)
        except (DefusedXmlException, SAXException) as e:
            # Forbidden constructs and errors raised by the target end the parse.
            logger.debug("Parsing XML error: %s", e)
            raise ExternalParsingError(str(e)) from e

    def close(self):
        """Tell the parser all data is delivered. This triggers the end of the document."""
        try:
            if not self._started:
                # Without any data, the SAX reader would close without any events.
                self._parser.feed(b"")
            self._parser.close()
        except (DefusedXmlException, SAXException) as e:
            logger.debug("Parsing XML error: %s", e)
            raise ExternalParsingError(str(e)) from e


class CDATAElement(Element):
    """Custom XML element, which also stores the CDATA contents of the node.
    The standard :class:`~xml.etree.ElementTree.Element` merges that into the text.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.cdata = None  # assigned by FragmentTreeBuilder

    if typing.TYPE_CHECKING:
        # Make sure the type checking knows the actual type of the elements.
        def find(self, path: str, namespaces: dict[str, str] | None = None) -> CDATAElement | None:
            return super().find(path, namespaces)

        def findall(self, path: str, namespaces: dict[str, str] | None = None) -> list[CDATAElement]:
            return super().findall(path, namespaces)

        def __iter__(self) -> typing.Iterator[CDATAElement]:
            return super().__iter__()


class FragmentTreeBuilder(TreeBuilder, EventTarget):
    """Custom TreeBuilder that constructs the tree from tokenizer events.

    Errors are collected, as the SAX parser doesn't abort by itself.
    """

    def __init__(self, **kwargs):
        super().__init__(element_factory=CDATAElement, **kwargs)
        self.open_elements: list[CDATAElement] = []
        self.errors: list[Exception] = []

    def start_element(self, name, attributes):
        self.open_elements.append(self.start(name, dict(attributes)))

    def characters(self, chunk):
        self.data(chunk)

    def cdata(self, data):
        if self.open_elements:
            # Similar to the stack builder, the last block wins.
            self.open_elements[-1].cdata = data

    def end_element(self, name):
        self.end(name)
        self.open_elements.pop()

    def parse_error(self, exception):
        self.errors.append(exception)


def parse_xml_from_string(xml_string: str | bytes, forbid_dtd: bool | None = None) -> CDATAElement:
    """Provide a safe and consistent way for parsing XML into a tree.

    All elements have a :attr:`~CDATAElement.cdata` attribute that exposes the CDATA content.
    """
    target = FragmentTreeBuilder()
    tokenizer = XMLTokenizer(target, forbid_dtd=forbid_dtd)
    tokenizer.feed(xml_string)
    tokenizer.close()

    if target.errors:
        # Offer consistent results for callers to check for invalid data.
        error = target.errors[0]
        logger.debug("Parsing XML error: %s: %s", error, xml_string)
        raise ExternalParsingError(str(error)) from error

    return target.close()
