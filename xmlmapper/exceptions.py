"""Exceptions raised while mapping XML.

The decoding errors are recoverable: they describe missing or malformed data
in the XML input. The :class:`UnsupportedOperation` is different, it's raised
when a model uses a decoding feature that doesn't exist.
"""

from __future__ import annotations

from contextlib import contextmanager


@contextmanager
def wrap_coercion_errors(key: str, raw_value: str | None):
    """Convert the value into a Python format.
    This catches any typical exceptions and transforms them into a :class:`CoercionFailure`.
    """
    try:
        yield
    except (TypeError, ValueError, ArithmeticError) as e:
        raise CoercionFailure(f"Unable to parse '{key}' value {raw_value!r}: {e}", key=key) from e


class ExternalParsingError(ValueError):
    """Raise a ValueError for a parsing problem of the XML input."""


class DecodingError(ValueError):
    """Base class for all recoverable decoding errors."""

    def __init__(self, message, key: str | None = None):
        super().__init__(message)
        self.key = key


class EmptyFragmentSet(DecodingError):
    """The decoder was constructed without any XML fragments."""


class AmbiguousFragment(DecodingError):
    """A single value was requested, but multiple fragments are in scope."""


class MissingValue(DecodingError):
    """A required value is not present in the XML data."""


class CoercionFailure(DecodingError):
    """The value exists, but can't be converted to the requested type."""


class UnsupportedOperation(NotImplementedError):
    """A decoding path was requested that the decoder doesn't support.
    This signals a programming error in the model, not bad input.
    """
