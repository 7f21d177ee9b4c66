"""Parsing of the key expressions that the decoder accepts.

A key tells which scalar to extract from an XML fragment:

* ``"tag"`` - the text contents of the child element.
* ``"tag@"`` - the CDATA contents of the child element.
* ``"tag@attribute"`` - an attribute of the child element.
* ``"@attribute"`` - an attribute of the fragment itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from lru import LRU

from xmlmapper import conf

__all__ = (
    "KeyKind",
    "KeyExpression",
    "parse_key",
)


class KeyKind(Enum):
    """What part of the XML fragment a key refers to."""

    TEXT = "text"
    CDATA = "cdata"
    ATTRIBUTE = "attribute"
    OWN_ATTRIBUTE = "own_attribute"


@dataclass(frozen=True)
class KeyExpression:
    """A parsed key."""

    key: str
    kind: KeyKind
    tag: str | None = None
    attribute: str | None = None

    @property
    def is_malformed_cdata(self) -> bool:
        """Tell whether the key ends with an ``@`` that doesn't form a valid CDATA key.
        For example, ``"tag@attribute@"``.
        """
        return self.kind is not KeyKind.CDATA and self.key.endswith("@")

    def __str__(self):
        return self.key


_KEY_CACHE = LRU(conf.XMLMAPPER_KEY_CACHE_SIZE)


def parse_key(key: str) -> KeyExpression:
    """Translate the key string into the lookup it describes.

    Only the first ``@`` is meaningful. Everything after it is the attribute name,
    unless the ``@`` is the very last character (the CDATA suffix).
    """
    try:
        return _KEY_CACHE[key]
    except KeyError:
        pass

    index = key.find("@")
    if index == -1:
        expression = KeyExpression(key, KeyKind.TEXT, tag=key)
    elif index == 0:
        expression = KeyExpression(key, KeyKind.OWN_ATTRIBUTE, attribute=key[1:])
    elif index == len(key) - 1:
        expression = KeyExpression(key, KeyKind.CDATA, tag=key[:index])
    else:
        expression = KeyExpression(
            key, KeyKind.ATTRIBUTE, tag=key[:index], attribute=key[index + 1 :]
        )

    _KEY_CACHE[key] = expression
    return expression
