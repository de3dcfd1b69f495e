"""Export formats for canonical feature collections.

Each exporter is a pure function ``(collection, name) -> str``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from converter.errors import UnsupportedFormatError
from converter.layers.exporters.geojson import export_geojson
from converter.layers.exporters.gpx import export_gpx
from converter.layers.exporters.kml import export_kml
from converter.layers.feature import FeatureCollection

DEFAULT_FILENAME = "exported_layer"


@dataclass(frozen=True)
class ExportFormat:
    """An output format: its exporter, MIME type and file extension."""

    key: str
    exporter: Callable[[FeatureCollection, str], str]
    media_type: str
    extension: str


EXPORT_FORMATS: dict[str, ExportFormat] = {
    "geojson": ExportFormat("geojson", export_geojson, "application/geo+json", "geojson"),
    "kml": ExportFormat("kml", export_kml, "application/vnd.google-earth.kml+xml", "kml"),
    "gpx": ExportFormat("gpx", export_gpx, "application/gpx+xml", "gpx"),
}


def get_format(key: str) -> ExportFormat:
    """Look up an export format by key (case-insensitive).

    Raises:
        UnsupportedFormatError: For shapefile or any unknown key.
    """
    normalized = (key or "").lower()
    if normalized == "shapefile":
        raise UnsupportedFormatError("Shapefile export is not yet implemented.")
    fmt = EXPORT_FORMATS.get(normalized)
    if fmt is None:
        raise UnsupportedFormatError(f"Unsupported format: {key}")
    return fmt


def export_collection(collection: FeatureCollection, name: str, key: str) -> str:
    """Export ``collection`` in the format named by ``key``."""
    return get_format(key).exporter(collection, name)


def export_filename(name: str | None) -> str:
    """File stem for a layer: whitespace runs become underscores."""
    if not name:
        return DEFAULT_FILENAME
    return re.sub(r"\s+", "_", name)


__all__ = [
    "EXPORT_FORMATS",
    "ExportFormat",
    "export_collection",
    "export_filename",
    "export_geojson",
    "export_gpx",
    "export_kml",
    "get_format",
]
