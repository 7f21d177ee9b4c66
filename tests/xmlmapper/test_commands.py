from io import StringIO

import orjson
import pytest
from django.core.management import CommandError, call_command


def _run(*args) -> tuple[str, str]:
    stdout = StringIO()
    stderr = StringIO()
    call_command("parsefeed", *args, stdout=stdout, stderr=stderr)
    return stdout.getvalue(), stderr.getvalue()


def test_parsefeed_stream(feed_path):
    stdout, stderr = _run(str(feed_path))
    data = orjson.loads(stdout)
    assert data["title"] == "Radio Amsterdam"
    assert data["pub_date"] == "2020-10-07T14:15:08-07:00"
    assert data["items"][0]["content"] == "<p>Bridges &amp; canals</p>"
    assert data["items"][0]["enclosure"]["length"] == 12345
    assert stderr == ""


def test_parsefeed_decode(feed_path):
    stdout, _ = _run("--decode", str(feed_path))
    data = orjson.loads(stdout)
    assert data["version"] == "2.0"
    assert data["channel"]["title"] == "Radio Amsterdam"
    assert len(data["channel"]["items"]) == 2


def test_parsefeed_model(feed_path):
    stdout, _ = _run("--model=xmlmapper.feeds.models.RSSFeed", "--indent", str(feed_path))
    assert stdout.startswith('{\n  "channel": {')
    assert orjson.loads(stdout)["channel"]["language"] == "nl"


def test_parsefeed_invalid_model(feed_path):
    with pytest.raises(CommandError):
        _run("--model=xmlmapper.feeds.models.Missing", str(feed_path))


def test_parsefeed_missing_file(tmp_path):
    with pytest.raises(CommandError, match="No such file"):
        _run(str(tmp_path / "missing.xml"))


def test_parsefeed_malformed(tmp_path):
    path = tmp_path / "broken.xml"
    path.write_bytes(b"<channel><title>Broken</title><item></channel>")

    stdout, stderr = _run(str(path))
    assert orjson.loads(stdout)["title"] == "Broken"
    assert "XML error(s)" in stderr

    with pytest.raises(CommandError, match="Unable to parse XML"):
        _run("--abort-on-error", str(path))

    with pytest.raises(CommandError, match="Unable to parse XML"):
        _run("--decode", str(path))


def test_parsefeed_decoding_error(tmp_path):
    path = tmp_path / "twice.xml"
    path.write_bytes(b"<rss><channel/><channel/></rss>")
    with pytest.raises(CommandError, match="Unable to decode RSSFeed"):
        _run("--decode", str(path))
