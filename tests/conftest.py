from __future__ import annotations

import django
import pytest

from xmlmapper import __version__, conf
from xmlmapper.decoding import parse_fragment
from xmlmapper.decoding.fragments import ElementFragment
from tests.utils import FEED_XML


def pytest_configure():
    print(f"Running xmlmapper {__version__} with Django {django.__version__}")
    print(f"Using XMLMAPPER_CHUNK_SIZE={conf.XMLMAPPER_CHUNK_SIZE}")


@pytest.fixture()
def feed_path():
    """The podcast feed that most tests use."""
    return FEED_XML


@pytest.fixture()
def feed_bytes(feed_path) -> bytes:
    return feed_path.read_bytes()


@pytest.fixture()
def feed_fragment(feed_bytes) -> ElementFragment:
    """The parsed ``<rss>`` element of the feed."""
    return parse_fragment(feed_bytes)


@pytest.fixture()
def channel_fragment(feed_fragment) -> ElementFragment:
    return feed_fragment.child_named("channel")
