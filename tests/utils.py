from __future__ import annotations

from pathlib import Path

from xmlmapper.parsers.xml import EventTarget, is_whitespace

FILES_ROOT = Path(__file__).parent.joinpath("files")
FEED_XML = FILES_ROOT.joinpath("feed.xml")


class RecordingTarget(EventTarget):
    """Collect all tokenizer events, for comparing them in tests.

    Whitespace between elements is dropped, and text that the parser
    delivered in multiple chunks is merged into a single event.
    """

    def __init__(self):
        self.events = []
        self.errors = []

    def start_element(self, name, attributes):
        self.events.append(("start", name, dict(attributes)))

    def characters(self, chunk):
        if is_whitespace(chunk):
            return
        if self.events and self.events[-1][0] == "text":
            self.events[-1] = ("text", self.events[-1][1] + chunk)
        else:
            self.events.append(("text", chunk))

    def cdata(self, data):
        self.events.append(("cdata", data))

    def end_element(self, name):
        self.events.append(("end", name))

    def end_document(self):
        self.events.append(("end_document",))

    def parse_error(self, exception):
        self.errors.append(exception)
