"""Domain models for RSS podcast feeds."""

from .models import Channel, Enclosure, Image, Item, RSSFeed

__all__ = (
    "Channel",
    "Enclosure",
    "Image",
    "Item",
    "RSSFeed",
)
