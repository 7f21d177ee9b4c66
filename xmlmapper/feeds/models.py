"""Models for RSS podcast feeds.

These models support both ways of mapping XML:

* As :class:`~xmlmapper.streaming.entity.Entity`, the streaming builder fills them
  while the feed is downloaded. Use ``Channel()`` as root to skip the ``<rss>`` element.
* As :class:`~xmlmapper.decoding.nodes.DecodableNode`, the decoder reads them
  from a parsed tree, using the keys of each field.

The ``itunes:`` and ``content:`` tags are matched by their literal prefix,
as feeds nearly always use those aliases.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from xmlmapper.decoding.nodes import DecodableNode, xml_field
from xmlmapper.parsers.values import URL
from xmlmapper.streaming.entity import Entity

__all__ = (
    "Enclosure",
    "Image",
    "Item",
    "Channel",
    "RSSFeed",
)


def _cdata_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace").strip()


def _decode_description(node, decoder):
    # The CDATA of <description> takes precedence over its text, as in set_data().
    data = decoder.keyed().decode_cdata_if_present("description@")
    if data is not None:
        node.description = _cdata_text(data)
    return node


@dataclass
class Enclosure(Entity, DecodableNode):
    """The ``<enclosure url="..." length="..." type="audio/mpeg"/>`` element of an episode."""

    tag = "enclosure"

    url: URL | None = xml_field("@url", default=None)
    length: int | None = xml_field("@length", default=None)
    type: str | None = xml_field("@type", default=None)

    def set_attribute(self, value, tag, attribute):
        if tag is not None:
            super().set_attribute(value, tag, attribute)
        elif attribute == "url":
            self.url = self.coerce_url(value)
        elif attribute == "length":
            self.length = self.coerce_int(value)
        elif attribute == "type":
            self.type = value
        else:
            super().set_attribute(value, tag, attribute)


@dataclass
class Image(Entity, DecodableNode):
    """The ``<image>`` element of a channel."""

    tag = "image"

    url: URL | None = None
    title: str | None = None
    link: URL | None = None

    def set_value(self, value, tag):
        if tag == "url":
            self.url = self.coerce_url(value)
        elif tag == "title":
            self.title = value
        elif tag == "link":
            self.link = self.coerce_url(value)
        else:
            super().set_value(value, tag)


@dataclass
class Item(Entity, DecodableNode):
    """A single ``<item>`` of the channel, typically a podcast episode."""

    tag = "item"
    child_types = {"enclosure": Enclosure}

    title: str | None = None
    link: URL | None = None
    description: str | None = None
    guid: str | None = None
    pub_date: datetime | None = xml_field("pubDate", default=None)
    author: str | None = xml_field("itunes:author", default=None)
    duration: str | None = xml_field("itunes:duration", default=None)
    episode: int | None = xml_field("itunes:episode", default=None)
    explicit: bool = xml_field("itunes:explicit", default=False)
    image_url: URL | None = xml_field("itunes:image@href", default=None)
    content: bytes | None = xml_field("content:encoded@", default=None)
    enclosure: Enclosure | None = None

    @classmethod
    def from_decoder(cls, decoder):
        return _decode_description(super().from_decoder(decoder), decoder)

    def set_value(self, value, tag):
        if tag == "title":
            self.title = value
        elif tag == "link":
            self.link = self.coerce_url(value)
        elif tag == "description":
            self.description = value
        elif tag == "guid":
            self.guid = value
        elif tag == "pubDate":
            self.pub_date = self.coerce_date(value)
        elif tag == "itunes:author":
            self.author = value
        elif tag == "itunes:duration":
            self.duration = value
        elif tag == "itunes:episode":
            self.episode = self.coerce_int(value)
        elif tag == "itunes:explicit":
            self.explicit = self.coerce_bool(value)
        else:
            super().set_value(value, tag)

    def set_data(self, data, tag):
        if tag == "content:encoded":
            self.content = data
        elif tag == "description":
            self.description = _cdata_text(data)
        else:
            super().set_data(data, tag)

    def set_attribute(self, value, tag, attribute):
        if tag == "itunes:image" and attribute == "href":
            self.image_url = self.coerce_url(value)
        else:
            super().set_attribute(value, tag, attribute)

    def set_child_entity(self, child, tag):
        if tag == "enclosure":
            self.enclosure = child
        else:
            super().set_child_entity(child, tag)


@dataclass
class Channel(Entity, DecodableNode):
    """The ``<channel>`` element, which describes the whole podcast."""

    tag = "channel"
    child_types = {"item": Item, "image": Image}

    title: str | None = None
    link: URL | None = None
    description: str | None = None
    language: str | None = None
    copyright: str | None = None
    author: str | None = xml_field("itunes:author", default=None)
    explicit: bool = xml_field("itunes:explicit", default=False)
    image_url: URL | None = xml_field("itunes:image@href", default=None)
    pub_date: datetime | None = xml_field("pubDate", default=None)
    last_build_date: datetime | None = xml_field("lastBuildDate", default=None)
    image: Image | None = None
    items: list[Item] = xml_field("item", default_factory=list)

    @classmethod
    def from_decoder(cls, decoder):
        return _decode_description(super().from_decoder(decoder), decoder)

    @property
    def latest_item(self) -> Item | None:
        """The most recently published episode."""
        dated = [item for item in self.items if item.pub_date is not None]
        if dated:
            return max(dated, key=lambda item: item.pub_date)
        return self.items[0] if self.items else None

    def set_value(self, value, tag):
        if tag == "title":
            self.title = value
        elif tag == "link":
            self.link = self.coerce_url(value)
        elif tag == "description":
            self.description = value
        elif tag == "language":
            self.language = value
        elif tag == "copyright":
            self.copyright = value
        elif tag == "itunes:author":
            self.author = value
        elif tag == "itunes:explicit":
            self.explicit = self.coerce_bool(value)
        elif tag == "pubDate":
            self.pub_date = self.coerce_date(value)
        elif tag == "lastBuildDate":
            self.last_build_date = self.coerce_date(value)
        else:
            super().set_value(value, tag)

    def set_data(self, data, tag):
        if tag == "description":
            self.description = _cdata_text(data)
        else:
            super().set_data(data, tag)

    def set_attribute(self, value, tag, attribute):
        if tag == "itunes:image" and attribute == "href":
            self.image_url = self.coerce_url(value)
        else:
            super().set_attribute(value, tag, attribute)

    def set_child_entity(self, child, tag):
        if tag == "item":
            self.items.append(child)
        elif tag == "image":
            self.image = child
        else:
            super().set_child_entity(child, tag)


@dataclass
class RSSFeed(Entity, DecodableNode):
    """The ``<rss version="2.0">`` root element."""

    tag = "rss"
    child_types = {"channel": Channel}

    channel: Channel | None = None
    version: str | None = xml_field("@version", default=None)

    def set_attribute(self, value, tag, attribute):
        if tag is None and attribute == "version":
            self.version = value
        else:
            super().set_attribute(value, tag, attribute)

    def set_child_entity(self, child, tag):
        if tag == "channel":
            self.channel = child
        else:
            super().set_child_entity(child, tag)
