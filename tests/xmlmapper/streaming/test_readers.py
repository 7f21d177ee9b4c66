import logging
from io import BytesIO

import pytest

from xmlmapper import conf
from xmlmapper.streaming import ByteSource, FileReader, URLReader


class Collector:
    def __init__(self):
        self.chunks = []
        self.completed = 0

    def on_data(self, chunk):
        self.chunks.append(chunk)

    def on_complete(self):
        self.completed += 1


def test_iter_chunks_abstract():
    collector = Collector()
    source = ByteSource(collector.on_data, collector.on_complete)
    with pytest.raises(NotImplementedError):
        source.start()


class TestFileReader:
    """Prove that files are delivered in chunks."""

    def test_read(self, feed_path, feed_bytes):
        collector = Collector()
        reader = FileReader(feed_path, collector.on_data, collector.on_complete, chunk_size=100)
        reader.start()

        assert b"".join(collector.chunks) == feed_bytes
        assert max(len(chunk) for chunk in collector.chunks) == 100
        assert reader.bytes_read == len(feed_bytes)
        assert collector.completed == 1
        assert str(reader) == str(feed_path)

    def test_chunk_size_setting(self, settings, feed_path):
        settings.XMLMAPPER_CHUNK_SIZE = 10
        reader = FileReader(feed_path, print, print)
        assert reader.chunk_size == 10

    def test_cancel(self, feed_path):
        collector = Collector()

        def on_data(chunk):
            collector.on_data(chunk)
            reader.cancel()

        reader = FileReader(feed_path, on_data, collector.on_complete, chunk_size=100)
        reader.start()
        assert len(collector.chunks) == 1
        assert reader.cancelled
        assert collector.completed == 0

    def test_background(self, feed_path, feed_bytes):
        collector = Collector()
        reader = FileReader(feed_path, collector.on_data, collector.on_complete, chunk_size=100)
        reader.start(background=True)
        reader.join(timeout=10)

        assert b"".join(collector.chunks) == feed_bytes
        assert collector.completed == 1

    def test_background_error(self, tmp_path, caplog):
        collector = Collector()
        reader = FileReader(tmp_path / "missing.xml", collector.on_data, collector.on_complete)
        with caplog.at_level(logging.ERROR, logger="xmlmapper"):
            reader.start(background=True)
            with pytest.raises(FileNotFoundError):
                reader.join(timeout=10)

        assert "missing.xml failed" in caplog.text
        assert collector.completed == 0

    def test_start_once(self, feed_path):
        collector = Collector()
        reader = FileReader(feed_path, collector.on_data, collector.on_complete)
        reader.start(background=True)
        reader.join(timeout=10)
        with pytest.raises(RuntimeError, match="can only be started once"):
            reader.start(background=True)


class TestURLReader:
    """Prove that the network reader streams the response."""

    def test_read(self, monkeypatch, feed_bytes):
        requests = []

        def mock_urlopen(request, timeout):
            requests.append((request, timeout))
            return BytesIO(feed_bytes)

        monkeypatch.setattr("xmlmapper.streaming.readers.urlopen", mock_urlopen)
        collector = Collector()
        reader = URLReader(
            "https://example.com/feed.xml",
            collector.on_data,
            collector.on_complete,
            chunk_size=512,
        )
        reader.start()

        assert b"".join(collector.chunks) == feed_bytes
        assert collector.completed == 1
        assert str(reader) == "https://example.com/feed.xml"

        request, timeout = requests[0]
        assert request.full_url == "https://example.com/feed.xml"
        assert request.get_header("User-agent") == "xmlmapper"
        assert timeout == conf.XMLMAPPER_NETWORK_TIMEOUT

    def test_timeout(self):
        reader = URLReader("https://example.com/feed.xml", print, print, timeout=2)
        assert reader.timeout == 2
