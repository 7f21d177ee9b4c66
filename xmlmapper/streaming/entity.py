"""The protocol that domain models implement to be built by the :class:`StackBuilder`.

Each XML element that becomes an object is an :class:`Entity`.
The builder asks the current entity whether a tag starts a child entity,
and passes all text, CDATA and attribute values of the other tags to it.

Usage:

.. code-block:: python

    class Channel(Entity):
        tag = "channel"
        child_types = {"item": Item}

        def set_value(self, value, tag):
            if tag == "title":
                self.title = value

        def set_child_entity(self, child, tag):
            self.items.append(child)
"""

from __future__ import annotations

import logging
from datetime import datetime

from xmlmapper.parsers.values import (
    URL,
    parse_bool,
    parse_int,
    parse_rfc822_datetime,
    parse_url,
)

logger = logging.getLogger(__name__)

__all__ = ("Entity",)


class Entity:
    """Base class for all objects that the streaming builder constructs.

    The default implementations ignore all values,
    so subclasses only have to implement the tags they're interested in.
    """

    #: The XML tag of the element this entity represents.
    tag: str = None

    #: Which child tags start a new entity, as ``{tag: entity class}``.
    child_types: dict[str, type[Entity]] = {}

    def set_value(self, value: str, tag: str):
        """Receive the text of a ``<tag>`` child element."""
        logger.debug("%s ignores text of <%s>", self.__class__.__name__, tag)

    def set_data(self, data: bytes, tag: str):
        """Receive the CDATA of a ``<tag>`` child element."""
        logger.debug("%s ignores CDATA of <%s>", self.__class__.__name__, tag)

    def set_attribute(self, value: str, tag: str | None, attribute: str):
        """Receive an attribute value.
        When the tag is ``None``, the attribute belongs to the entity's own element.
        """
        logger.debug(
            "%s ignores attribute %s of <%s>",
            self.__class__.__name__,
            attribute,
            tag or self.tag,
        )

    def make_child_entity(self, tag: str) -> Entity | None:
        """Create the entity for a child element.
        Returning ``None`` tells the tag holds a value for this entity.
        """
        try:
            entity_class = self.child_types[tag]
        except KeyError:
            return None
        else:
            return entity_class()

    def set_child_entity(self, child: Entity, tag: str):
        """Receive the completed child entity that :meth:`make_child_entity` created."""
        raise NotImplementedError(
            f"{self.__class__.__name__}.set_child_entity() is not implemented to receive <{tag}>"
        )

    # Helpers for coercing the text values.
    # These never raise, as feeds often contain invalid data.

    def coerce_date(self, value: str | None) -> datetime | None:
        """Parse an RFC-822 date, e.g. ``Sat, 15 Aug 2020 03:00:00 +0000``."""
        return self._coerce(value, parse_rfc822_datetime, "date")

    def coerce_url(self, value: str | None) -> URL | None:
        return self._coerce(value, parse_url, "URL")

    def coerce_int(self, value: str | None) -> int | None:
        return self._coerce(value, parse_int, "integer")

    def coerce_bool(self, value: str | None) -> bool:
        """Values like "true" and "yes" are true, anything else is false."""
        return parse_bool(value.strip() if value is not None else None)

    def _coerce(self, value, parser, type_name):
        if value is None:
            return None

        trimmed = value.strip()
        if not trimmed:
            return None

        try:
            return parser(trimmed)
        except ValueError:
            logger.warning("Could not coerce %s: %r", type_name, value)
            return None

    def __repr__(self):
        return f"<{self.__class__.__name__}: <{self.tag}>>"
