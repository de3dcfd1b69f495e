"""Canonical feature model, ArcGIS normalization and export formats.

Raw ArcGIS query features go through ``normalize_geometry`` and
``build_collection`` into a FeatureCollection, which the exporters turn into
GeoJSON, KML 2.2 or GPX 1.1 text.
"""

from converter.layers.builder import build_collection, normalize_features
from converter.layers.feature import (
    CRS84,
    Feature,
    FeatureCollection,
    Geometry,
    LineString,
    Point,
    Polygon,
)
from converter.layers.geometry import normalize_geometry
from converter.layers.store import LayerRecord, LayerStore

__all__ = [
    "CRS84",
    "Feature",
    "FeatureCollection",
    "Geometry",
    "LayerRecord",
    "LayerStore",
    "LineString",
    "Point",
    "Polygon",
    "build_collection",
    "normalize_features",
    "normalize_geometry",
]
