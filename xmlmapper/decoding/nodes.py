"""Declarative decoding of dataclasses.

Dataclasses that inherit from :class:`DecodableNode` receive a ``from_decoder()``
implementation that reads every field by its key. The key is the field name,
unless it's overwritten with :func:`xml_field`:

.. code-block:: python

    @dataclass
    class Item(DecodableNode):
        title: str
        guid: str | None = None
        pub_date: datetime | None = xml_field("pubDate", default=None)
        enclosure_url: URL | None = xml_field("enclosure@url", default=None)
        content: bytes | None = xml_field("content:encoded@", default=None)

Fields that are optional (``X | None``) or that have a default are decoded
with :meth:`~xmlmapper.decoding.decoder.KeyedContainer.decode_if_present`,
all other fields are required.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from functools import lru_cache

from xmlmapper.decoding.decoder import StructuredDecoder

__all__ = (
    "DecodableNode",
    "xml_field",
)

NoneType = type(None)

XML_KEY = "xml_key"


def xml_field(key: str, **kwargs) -> dataclasses.Field:
    """Define a dataclass field that is read from a different key."""
    metadata = {**kwargs.pop("metadata", {}), XML_KEY: key}
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclasses.dataclass(frozen=True)
class FieldKey:
    """How a single dataclass field is decoded."""

    name: str
    key: str
    type: type
    optional: bool
    has_default: bool


def _unwrap_optional(annotation) -> tuple[type, bool]:
    """Translate ``X | None`` into ``(X, True)``."""
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(annotation) if arg is not NoneType]
        if len(args) != 1:
            raise TypeError(f"Can't decode union type {annotation!r}, only 'X | None' is supported.")
        return args[0], True
    return annotation, False


@lru_cache
def get_field_keys(cls: type) -> tuple[FieldKey, ...]:
    """Tell how all init fields of the dataclass are decoded."""
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls.__name__} should be a dataclass to be decoded from XML.")

    type_hints = typing.get_type_hints(cls)
    field_keys = []
    for field in dataclasses.fields(cls):
        if not field.init:
            continue

        type_, optional = _unwrap_optional(type_hints[field.name])
        has_default = (
            field.default is not dataclasses.MISSING
            or field.default_factory is not dataclasses.MISSING
        )
        field_keys.append(
            FieldKey(
                name=field.name,
                key=field.metadata.get(XML_KEY, field.name),
                type=type_,
                optional=optional or has_default,
                has_default=has_default,
            )
        )

    return tuple(field_keys)


class DecodableNode:
    """Base class for dataclasses that can be decoded from an XML fragment."""

    @classmethod
    def from_decoder(cls, decoder: StructuredDecoder):
        """Initialize this dataclass from the fields of the XML fragment."""
        container = decoder.keyed()
        values = {}
        for field_key in get_field_keys(cls):
            if not field_key.optional:
                values[field_key.name] = container.decode(field_key.type, field_key.key)
                continue

            value = container.decode_if_present(field_key.type, field_key.key)
            if value is not None:
                values[field_key.name] = value
            elif not field_key.has_default:
                values[field_key.name] = None

        return cls(**values)
