"""The structured decoder, that reads typed values from XML fragments.

The decoder holds one or more fragments. Typically, that's a single element,
or all sibling elements that share the same tag (to decode a list).
Values are read through containers:

* The :class:`KeyedContainer` resolves values by their key expression
  (see :mod:`xmlmapper.parsers.keys`), and coerces them to the requested type.
* The :class:`SequenceContainer` decodes each fragment as a separate object.

Decodable classes implement a ``from_decoder()`` class method:

.. code-block:: python

    class Enclosure:
        @classmethod
        def from_decoder(cls, decoder: StructuredDecoder):
            container = decoder.keyed()
            return cls(
                url=container.decode(URL, "@url"),
                length=container.decode_if_present(int, "@length"),
            )

For dataclasses, :class:`~xmlmapper.decoding.nodes.DecodableNode` provides this method.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

from xmlmapper.decoding.fragments import Fragment, parse_fragment
from xmlmapper.exceptions import (
    AmbiguousFragment,
    CoercionFailure,
    EmptyFragmentSet,
    MissingValue,
    UnsupportedOperation,
    wrap_coercion_errors,
)
from xmlmapper.parsers.keys import KeyKind, parse_key
from xmlmapper.parsers.values import (
    URL,
    parse_bool,
    parse_decimal,
    parse_float,
    parse_int,
    parse_rfc822_datetime,
    parse_url,
)

logger = logging.getLogger(__name__)

__all__ = (
    "StructuredDecoder",
    "KeyedContainer",
    "SequenceContainer",
    "decode",
    "decode_xml",
)

T = TypeVar("T")

#: Types with a custom textual format. These are checked first.
SPECIAL_PARSERS: dict[type, Callable[[str], Any]] = {
    datetime: parse_rfc822_datetime,
    URL: parse_url,
}

#: Types that are parsed from their standard textual notation.
SCALAR_PARSERS: dict[type, Callable[[str], Any]] = {
    str: str,
    bool: parse_bool,
    int: parse_int,
    float: parse_float,
    Decimal: parse_decimal,
}


def _is_scalar_type(type_) -> bool:
    return type_ in SPECIAL_PARSERS or type_ in SCALAR_PARSERS or type_ is bytes


class StructuredDecoder:
    """Decode typed values from one or more XML fragments."""

    def __init__(self, fragments: Iterable[Fragment], coding_path: tuple[str, ...] = ()):
        self.fragments = list(fragments)
        self.coding_path = tuple(coding_path)
        if not self.fragments:
            raise EmptyFragmentSet(f"Decoder initialized with no XML elements at {self.path}")

    @property
    def path(self) -> str:
        """A readable notation of the coding path, for error messages."""
        return "/".join(self.coding_path) or "(root)"

    def element(self) -> Fragment:
        """Return the single fragment that scalar values are read from."""
        if len(self.fragments) > 1:
            raise AmbiguousFragment(
                f"Expected a single <{self.fragments[0].tag}> element at {self.path},"
                f" found {len(self.fragments)}"
            )
        return self.fragments[0]

    def keyed(self) -> KeyedContainer:
        """Read the values of the single fragment by their key."""
        return KeyedContainer(self)

    def sequence(self) -> SequenceContainer:
        """Read each fragment as a separate object."""
        return SequenceContainer(self)

    def single_value(self):
        raise UnsupportedOperation("Single value decoding is not supported for XML fragments.")

    def decode(self, type_: type[T]) -> T:
        """Decode the requested type from the fragments.
        A ``list[...]`` type decodes each fragment, other types use their ``from_decoder()``.
        """
        if typing.get_origin(type_) is list:
            (item_type,) = typing.get_args(type_)
            return self.sequence().decode_all(item_type)

        try:
            from_decoder = type_.from_decoder
        except AttributeError:
            raise UnsupportedOperation(
                f"{type_!r} can't be decoded from XML, it has no from_decoder() method."
            ) from None

        return from_decoder(self)

    def nested(self, key: str, fragments: Iterable[Fragment]) -> StructuredDecoder:
        """Create a decoder for the child fragments of the given key."""
        return StructuredDecoder(fragments, coding_path=self.coding_path + (key,))

    def get_value_if_present(self, key: str) -> str | None:
        """Resolve the raw string value of a key expression."""
        expression = parse_key(key)
        element = self.element()
        if expression.kind is KeyKind.OWN_ATTRIBUTE:
            return element.attribute_named(expression.attribute)

        child = element.child_named(expression.tag)
        if child is None:
            return None
        elif expression.kind is KeyKind.ATTRIBUTE:
            return child.attribute_named(expression.attribute)
        elif expression.kind is KeyKind.CDATA:
            cdata = child.cdata
            return cdata.decode("utf-8", errors="replace") if cdata is not None else None
        else:
            return child.text

    def get_cdata_if_present(self, key: str) -> bytes | None:
        """Resolve the CDATA contents of a ``tag@`` key."""
        expression = parse_key(key)
        if expression.kind is not KeyKind.CDATA:
            raise UnsupportedOperation(
                f"CDATA can only be decoded using a key with an '@' suffix, not '{key}'."
            )

        child = self.element().child_named(expression.tag)
        return child.cdata if child is not None else None


class KeyedContainer:
    """Access the values of a single fragment by their key."""

    def __init__(self, decoder: StructuredDecoder):
        self.decoder = decoder
        self.all_keys = frozenset(decoder.element().child_names())

    @property
    def coding_path(self) -> tuple[str, ...]:
        return self.decoder.coding_path

    def contains(self, key: str) -> bool:
        """Tell whether a child element exists for the key."""
        return key in self.all_keys

    def decode_nil(self, key: str) -> bool:
        """Tell whether the key has no value at all."""
        return not self.contains(key) and self.decoder.get_value_if_present(key) is None

    def decode(self, type_: type[T], key: str) -> T:
        """Decode a required value.

        :raises MissingValue: When the value doesn't exist.
        :raises CoercionFailure: When the value can't be parsed.
        """
        return self._decode(type_, key, required=True)

    def decode_if_present(self, type_: type[T], key: str) -> T | None:
        """Decode an optional value. Values that can't be parsed are logged and skipped."""
        return self._decode(type_, key, required=False)

    def _decode(self, type_, key, required):
        expression = parse_key(key)
        if expression.is_malformed_cdata:
            raise UnsupportedOperation(
                f"'{key}' is not a valid CDATA key, only 'tag@' selects the CDATA of a tag."
            )
        elif expression.kind is KeyKind.CDATA:
            return self._decode_cdata(type_, key, required)
        elif type_ is bytes:
            raise UnsupportedOperation(
                f"Bytes can only be decoded from CDATA, using a '{key}@' key."
            )

        parser = SPECIAL_PARSERS.get(type_) or SCALAR_PARSERS.get(type_)
        if parser is not None:
            return self._parse(key, parser, required)
        else:
            return self._decode_composite(type_, key, required)

    def _parse(self, key, parser, required):
        raw_value = self.decoder.get_value_if_present(key)
        if raw_value is None:
            if required:
                raise MissingValue(f"No value decoded for '{key}' at {self.decoder.path}", key=key)
            return None

        if required:
            with wrap_coercion_errors(key, raw_value):
                return parser(raw_value)

        try:
            return parser(raw_value)
        except (ValueError, ArithmeticError) as e:
            logger.warning("Could not coerce '%s' at %s: %s", key, self.decoder.path, e)
            return None

    def _decode_cdata(self, type_, key, required):
        data = self.decoder.get_cdata_if_present(key)
        if data is None:
            if required:
                raise MissingValue(f"No CDATA decoded for '{key}' at {self.decoder.path}", key=key)
            return None

        if type_ is bytes:
            return data
        elif type_ is str:
            with wrap_coercion_errors(key, None):
                return data.decode("utf-8")
        elif required:
            raise CoercionFailure(
                f"Could not cast CDATA value of '{key}' to {type_.__name__}", key=key
            )
        else:
            return None

    def _decode_composite(self, type_, key, required):
        fragments = self.decoder.element().children_named(key)
        if not fragments:
            if required:
                raise MissingValue(
                    f"No <{key}> element found at {self.decoder.path}", key=key
                )
            return None

        return self.decoder.nested(key, fragments).decode(type_)

    # Typed shortcuts

    def decode_str(self, key: str) -> str:
        return self.decode(str, key)

    def decode_str_if_present(self, key: str) -> str | None:
        return self.decode_if_present(str, key)

    def decode_bool(self, key: str) -> bool:
        return self.decode(bool, key)

    def decode_bool_if_present(self, key: str) -> bool | None:
        return self.decode_if_present(bool, key)

    def decode_int(self, key: str) -> int:
        return self.decode(int, key)

    def decode_int_if_present(self, key: str) -> int | None:
        return self.decode_if_present(int, key)

    def decode_float(self, key: str) -> float:
        return self.decode(float, key)

    def decode_float_if_present(self, key: str) -> float | None:
        return self.decode_if_present(float, key)

    def decode_datetime(self, key: str) -> datetime:
        return self.decode(datetime, key)

    def decode_datetime_if_present(self, key: str) -> datetime | None:
        return self.decode_if_present(datetime, key)

    def decode_url(self, key: str) -> URL:
        return self.decode(URL, key)

    def decode_url_if_present(self, key: str) -> URL | None:
        return self.decode_if_present(URL, key)

    def decode_cdata(self, key: str) -> bytes:
        return self.decode(bytes, key)

    def decode_cdata_if_present(self, key: str) -> bytes | None:
        return self.decode_if_present(bytes, key)

    # Not supported by the XML decoder.

    def nested_container(self, key: str):
        raise UnsupportedOperation("Nested keyed containers are not supported.")

    def nested_sequence(self, key: str):
        raise UnsupportedOperation("Nested sequence containers are not supported.")

    def super_decoder(self, key: str | None = None):
        raise UnsupportedOperation("Super decoders are not supported.")


class SequenceContainer:
    """Decode each fragment of the decoder as a separate object, in document order."""

    def __init__(self, decoder: StructuredDecoder):
        self.decoder = decoder
        self.current_index = 0

    @property
    def coding_path(self) -> tuple[str, ...]:
        return self.decoder.coding_path

    @property
    def count(self) -> int:
        return len(self.decoder.fragments)

    @property
    def is_at_end(self) -> bool:
        return self.current_index >= self.count

    def decode(self, type_: type[T]) -> T:
        """Decode the next fragment as object."""
        if _is_scalar_type(type_):
            raise UnsupportedOperation(
                f"Decoding {type_.__name__} values from a sequence is not supported."
            )
        if self.is_at_end:
            raise MissingValue(
                f"Sequence at {self.decoder.path} is exhausted after {self.count} elements."
            )

        fragment = self.decoder.fragments[self.current_index]
        element_decoder = StructuredDecoder(
            [fragment], coding_path=self.coding_path + (str(self.current_index),)
        )
        value = element_decoder.decode(type_)
        self.current_index += 1
        return value

    def decode_all(self, type_: type[T]) -> list[T]:
        """Decode all remaining fragments."""
        values = []
        while not self.is_at_end:
            values.append(self.decode(type_))
        return values

    def decode_nil(self):
        raise UnsupportedOperation("Sequences of XML elements can't contain nil values.")

    def nested_container(self):
        raise UnsupportedOperation("Nested keyed containers are not supported.")

    def nested_sequence(self):
        raise UnsupportedOperation("Nested sequence containers are not supported.")

    def super_decoder(self):
        raise UnsupportedOperation("Super decoders are not supported.")


def decode(type_: type[T], fragments: Fragment | Iterable[Fragment]) -> T:
    """Decode the requested type from the fragments.

    :raises EmptyFragmentSet: When no fragments are given.
    """
    if isinstance(fragments, Fragment):
        fragments = [fragments]
    return StructuredDecoder(fragments).decode(type_)


def decode_xml(xml_string: str | bytes, type_: type[T]) -> T:
    """Parse the XML document, and decode the requested type from its root element."""
    return decode(type_, parse_fragment(xml_string))
