"""Quick utility to map an XML feed onto the models, and print the result as JSON."""

from __future__ import annotations

from argparse import ArgumentTypeError
from urllib.request import urlopen

import orjson
from django.core.management import BaseCommand, CommandError, CommandParser
from django.utils.module_loading import import_string

from xmlmapper import conf
from xmlmapper.decoding import decode_xml
from xmlmapper.exceptions import DecodingError, ExternalParsingError
from xmlmapper.streaming import StreamingParser


def _parse_model(value):
    try:
        return import_string(value)
    except ImportError as e:
        raise ArgumentTypeError(str(e)) from e


def _json_default(value):
    # CDATA contents
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError


class Command(BaseCommand):
    """Quick command to test how a feed is mapped."""

    help = (
        "Parse an XML feed into the models, and print it as JSON. This can be done using:"
        "  manage.py parsefeed https://example.com/podcast.xml"
        "  manage.py parsefeed --decode --model=xmlmapper.feeds.models.RSSFeed feed.xml"
    )

    def add_arguments(self, parser: CommandParser):
        parser.add_argument(
            "--decode",
            action="store_true",
            help=(
                "Parse the whole document first, and use the structured decoder."
                " By default, the streaming builder is used."
            ),
        )
        parser.add_argument(
            "-m",
            "--model",
            metavar="CLASS",
            type=_parse_model,
            help=(
                "Model class, in the format: package.module.ClassName."
                " Defaults to the Channel (streaming) or RSSFeed (decoding) model."
            ),
        )
        parser.add_argument(
            "--abort-on-error",
            action="store_true",
            default=None,
            help="Stop parsing at the first XML error, instead of continuing with the next tags.",
        )
        parser.add_argument(
            "--indent",
            action="store_true",
            help="Pretty-print the JSON output.",
        )
        parser.add_argument(
            "source",
            help="XML file or URL to parse.",
        )

    def handle(self, *args, **options):
        source = options["source"]
        model = options["model"] or import_string(
            "xmlmapper.feeds.models.RSSFeed"
            if options["decode"]
            else "xmlmapper.feeds.models.Channel"
        )

        try:
            if options["decode"]:
                result = decode_xml(self._read_source(source), model)
            else:
                result = self._stream_source(source, model, options["abort_on_error"])
        except OSError as e:  # FileNotFoundError or HTTP errors
            raise CommandError(str(e)) from e
        except ExternalParsingError as e:
            raise CommandError(f"Unable to parse XML: {e}") from e
        except DecodingError as e:
            raise CommandError(f"Unable to decode {model.__name__}: {e}") from e

        option = orjson.OPT_INDENT_2 if options["indent"] else None
        self.stdout.write(orjson.dumps(result, default=_json_default, option=option).decode())

    def _read_source(self, source: str) -> bytes:
        """Read the whole document, for the decoder."""
        if "://" in source:
            with urlopen(source, timeout=conf.XMLMAPPER_NETWORK_TIMEOUT) as response:  # noqa: S310
                return response.read()
        else:
            with open(source, "rb") as fh:
                return fh.read()

    def _stream_source(self, source: str, model: type, abort_on_error: bool | None):
        """Build the entity graph, while the document is being read."""
        parser = StreamingParser(model(), abort_on_error=abort_on_error)
        completed = []
        if "://" in source:
            parser.parse_url(source, completion=completed.append)
        else:
            parser.parse_file(source, completion=completed.append)

        if not completed:
            raise CommandError("Parsing did not complete.")

        builder = completed[0]
        if builder.errors:
            self.stderr.write(self.style.WARNING(f"Found {len(builder.errors)} XML error(s)"))
        return builder.root
