"""Decoding of typed values from a parsed XML tree.

The :class:`StructuredDecoder` reads values from :class:`Fragment` objects
using key expressions, and coerces them into the requested Python types.
"""

from .decoder import KeyedContainer, SequenceContainer, StructuredDecoder, decode, decode_xml
from .fragments import ElementFragment, Fragment, parse_fragment
from .nodes import DecodableNode, xml_field

__all__ = (
    "DecodableNode",
    "ElementFragment",
    "Fragment",
    "KeyedContainer",
    "SequenceContainer",
    "StructuredDecoder",
    "decode",
    "decode_xml",
    "parse_fragment",
    "xml_field",
)
