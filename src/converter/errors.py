"""Error taxonomy for fetching, resolving and exporting layers.

Every error is terminal for its unit of work (one layer, one format); callers
report it and move on. Nothing is retried.
"""

from __future__ import annotations


class ConverterError(Exception):
    """Base class for all converter failures."""


class TransportError(ConverterError):
    """HTTP-level failure: non-success status or no response at all."""


class ServiceError(ConverterError):
    """A JSON document that came back with an ``error`` object."""


class FormatError(ConverterError):
    """A query response without a usable ``features`` array."""


class UnsupportedFormatError(ConverterError):
    """An export format or item type the converter does not handle."""
