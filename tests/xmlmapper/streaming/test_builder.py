import logging

import pytest

from xmlmapper.exceptions import ExternalParsingError
from xmlmapper.streaming import BuilderState, Entity, StackBuilder, stream_xml


class Track(Entity):
    tag = "track"

    def __init__(self):
        self.values = []
        self.data = []
        self.attributes = []

    def set_value(self, value, tag):
        self.values.append((tag, value))

    def set_data(self, data, tag):
        self.data.append((tag, data))

    def set_attribute(self, value, tag, attribute):
        self.attributes.append((tag, attribute, value))


class Album(Track):
    tag = "album"
    child_types = {"track": Track}

    def __init__(self):
        super().__init__()
        self.tracks = []

    def set_child_entity(self, child, tag):
        self.tracks.append(child)


@pytest.fixture()
def builder():
    builder = StackBuilder(Album())
    builder.completed = []
    builder.completion = builder.completed.append
    return builder


def test_root_tag_required():
    with pytest.raises(TypeError, match="tag should be set"):
        StackBuilder(Entity())


class TestStackBuilder:
    """Prove that the state machine applies the events to the right entity."""

    def test_awaiting_root(self, builder):
        assert builder.state is BuilderState.AWAITING_ROOT
        builder.start_element("collection", {})
        builder.characters("ignored")
        builder.end_element("collection")
        assert builder.state is BuilderState.AWAITING_ROOT
        assert builder.depth == 0
        assert builder.current is None

        builder.start_element("album", {})
        assert builder.state is BuilderState.BUILDING
        assert builder.depth == 1
        assert builder.current is builder.root
        assert builder.root.values == []

    def test_root_attributes(self, builder):
        builder.start_element("album", {"year": "2020"})
        assert builder.root.attributes == [(None, "year", "2020")]

    def test_text(self, builder):
        builder.start_element("album", {})
        builder.start_element("title", {})
        builder.characters("Hello ")
        builder.characters("\n  ")
        builder.characters("World")
        builder.end_element("title")
        assert builder.root.values == [("title", "Hello World")]
        assert builder.text is None

    def test_whitespace_only(self, builder):
        builder.start_element("album", {})
        builder.start_element("title", {})
        builder.characters("\n    ")
        builder.end_element("title")
        assert builder.root.values == []

    def test_cdata_last_wins(self, builder):
        builder.start_element("album", {})
        builder.start_element("notes", {})
        builder.cdata(b"first")
        builder.cdata(b"second")
        builder.end_element("notes")
        assert builder.root.data == [("notes", b"second")]
        assert builder.cdata_block is None

    def test_text_and_cdata(self, builder):
        builder.start_element("album", {})
        builder.start_element("notes", {})
        builder.characters("plain")
        builder.cdata(b"<p>html</p>")
        builder.end_element("notes")
        assert builder.root.values == [("notes", "plain")]
        assert builder.root.data == [("notes", b"<p>html</p>")]

    def test_scalar_attributes(self, builder):
        builder.start_element("album", {})
        builder.start_element("cover", [("href", "a.jpg"), ("href", "b.jpg")])
        builder.end_element("cover")
        # last duplicate wins, the end tag has nothing to deliver.
        assert builder.root.attributes == [("cover", "href", "b.jpg")]
        assert builder.root.values == []
        assert builder.depth == 1

    def test_child_entity(self, builder):
        builder.start_element("album", {})
        builder.start_element("track", {"id": "1"})
        assert builder.depth == 2
        track = builder.current
        assert isinstance(track, Track)
        assert track.attributes == [(None, "id", "1")]

        builder.start_element("title", {})
        builder.characters("Intro")
        builder.end_element("title")
        assert builder.root.tracks == []

        builder.end_element("track")
        assert builder.depth == 1
        assert builder.root.tracks == [track]
        assert track.values == [("title", "Intro")]

    def test_root_end_tag(self, builder):
        """The root is never popped, so its end tag doesn't change the state."""
        builder.start_element("album", {})
        builder.end_element("album")
        assert builder.depth == 1
        assert builder.state is BuilderState.BUILDING
        assert builder.root.values == []

    def test_end_document(self, builder):
        builder.start_element("album", {})
        builder.end_element("album")
        builder.end_document()
        assert builder.state is BuilderState.DONE
        assert builder.completed == [builder]

        # Only reported once, and later events are ignored.
        builder.end_document()
        builder.start_element("track", {})
        assert builder.completed == [builder]
        assert builder.depth == 1

    def test_end_document_without_root(self, builder, caplog):
        with caplog.at_level(logging.WARNING, logger="xmlmapper"):
            builder.start_element("single", {})
            builder.end_element("single")
            builder.end_document()

        assert builder.state is BuilderState.DONE
        assert builder.completed == [builder]
        assert "without finding the root <album>" in caplog.text

    def test_parse_error(self, builder, caplog):
        error = ValueError("mismatched tag")
        with caplog.at_level(logging.WARNING, logger="xmlmapper"):
            builder.parse_error(error)
        assert builder.errors == [error]
        assert "continuing: mismatched tag" in caplog.text

    def test_parse_error_abort(self):
        builder = StackBuilder(Album(), abort_on_error=True)
        with pytest.raises(ExternalParsingError, match="mismatched tag"):
            builder.parse_error(ValueError("mismatched tag"))

    def test_parse_error_setting(self, settings):
        settings.XMLMAPPER_ABORT_ON_ERROR = True
        builder = StackBuilder(Album())
        assert builder.abort_on_error

    def test_reset(self, builder):
        builder.start_element("album", {})
        builder.start_element("title", {})
        builder.characters("pending")
        builder.parse_error(ValueError("bad"))

        new_root = Album()
        builder.reset(new_root)
        assert builder.root is new_root
        assert builder.state is BuilderState.AWAITING_ROOT
        assert builder.stack == []
        assert builder.text is None
        assert builder.errors == []


def test_stream_xml():
    album = stream_xml(
        b"""<?xml version="1.0"?>
        <collection>
          <album>
            <title>Canals</title>
            <track id="1"><title>Intro</title></track>
            <track id="2"><title>Outro</title><lyrics><![CDATA[la & la]]></lyrics></track>
          </album>
        </collection>""",
        Album(),
    )
    assert album.values == [("title", "Canals")]
    assert [track.values for track in album.tracks] == [
        [("title", "Intro")],
        [("title", "Outro")],
    ]
    assert album.tracks[1].attributes == [(None, "id", "2")]
    assert album.tracks[1].data == [("lyrics", b"la & la")]
