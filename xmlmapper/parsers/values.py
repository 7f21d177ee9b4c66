"""Parsing of scalar values in the XML data.

All functions raise a :class:`ValueError` (or :class:`~xmlmapper.exceptions.CoercionFailure`)
when the value can't be parsed. The decoder translates that into a missing value.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal as D
from decimal import InvalidOperation
from urllib.parse import SplitResult, urlsplit

from xmlmapper.exceptions import CoercionFailure

RE_INTEGER = re.compile(r"\A[+-]?[0-9]+\Z")

# e.g. "Sat, 15 Aug 2020 03:00:00 +0000"
RFC822_NUMERIC_ZONE = "%a, %d %b %Y %H:%M:%S %z"
# e.g. "Wed, 07 Oct 2020 14:15:08 PDT", the zone is resolved separately.
RFC822_NAMED_ZONE = "%a, %d %b %Y %H:%M:%S"

# Time zone abbreviations seen in RSS feeds, as hours from UTC.
ZONE_ABBREVIATIONS = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    # North America
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
    "AKST": -9,
    "AKDT": -8,
    "HST": -10,
    # Europe
    "WET": 0,
    "WEST": 1,
    "BST": 1,
    "CET": 1,
    "CEST": 2,
    "EET": 2,
    "EEST": 3,
    # Australia
    "AWST": 8,
    "ACST": 9.5,
    "ACDT": 10.5,
    "AEST": 10,
    "AEDT": 11,
}


class URL(str):
    """A string that was validated as URL."""

    @property
    def parts(self) -> SplitResult:
        return urlsplit(self)


def parse_bool(raw_value: str | None) -> bool:
    """Translate the loose boolean notations of feeds.

    Anything that starts with a ``T`` or ``Y`` (e.g. "true", "Yes") is considered true,
    everything else is false. This also avoids failing on values like "clean" and "explicit".
    """
    return bool(raw_value) and raw_value[0] in "TtYy"


def parse_int(raw_value: str) -> int:
    """Translate an integer. Unlike :func:`int`, this doesn't allow whitespace or underscores."""
    if not RE_INTEGER.match(raw_value):
        raise CoercionFailure(f"Can't cast '{raw_value}' to integer")
    return int(raw_value)


def parse_float(raw_value: str) -> float:
    """Translate a floating point number."""
    return float(raw_value)


def parse_decimal(raw_value: str) -> D:
    """Translate a decimal number, e.g. a price."""
    try:
        return D(raw_value)
    except InvalidOperation:
        raise CoercionFailure(f"Can't cast '{raw_value}' to decimal") from None


def parse_url(raw_value: str) -> URL:
    """Translate a string into an URL value.

    Leading and trailing whitespace is ignored, but the URL itself can't contain spaces.
    """
    value = raw_value.strip()
    if not value:
        raise CoercionFailure("URL can't be empty")
    if any(char.isspace() or ord(char) < 32 for char in value):
        raise CoercionFailure(f"URL can't contain whitespace: '{raw_value}'")

    urlsplit(value)  # raises ValueError for e.g. unbalanced IPv6 brackets.
    return URL(value)


def parse_rfc822_datetime(raw_value: str) -> datetime:
    """Translate the RFC-822 dates of feeds into a Python datetime value.

    The first format has a numeric offset (e.g. ``+0000``),
    the second format has a time zone abbreviation (e.g. ``PDT``).
    """
    value = raw_value.strip()
    try:
        return datetime.strptime(value, RFC822_NUMERIC_ZONE)
    except ValueError:
        pass

    date_part, _, zone = value.rpartition(" ")
    try:
        offset = ZONE_ABBREVIATIONS[zone.upper()]
    except KeyError:
        raise CoercionFailure(
            "Date must be in 'Sat, 15 Aug 2020 03:00:00 +0000' or"
            f" 'Wed, 07 Oct 2020 14:15:08 PDT' format, got '{raw_value}'."
        ) from None

    try:
        naive = datetime.strptime(date_part, RFC822_NAMED_ZONE)
    except ValueError as e:
        raise CoercionFailure(str(e)) from e

    return naive.replace(tzinfo=timezone(timedelta(hours=offset), zone.upper()))
