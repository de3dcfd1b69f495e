"""Export a FeatureCollection to GeoJSON.

GeoJSON coordinates are [lng, lat] (already the internal storage
convention). The dict produced by ``to_geojson`` is also the input of the
KML and GPX exporters.
"""

from __future__ import annotations

import json

from converter.layers.feature import Feature, FeatureCollection


def to_geojson(collection: FeatureCollection) -> dict:
    """Convert a FeatureCollection to a GeoJSON FeatureCollection dict.

    Features without a geometry are left out.

    Args:
        collection: The collection to convert.

    Returns:
        Dict with a named CRS84 ``crs`` member and one Feature per input
        feature that has a geometry.
    """
    features = []
    for feature in collection.features:
        if feature.geometry is None:
            continue
        features.append(_feature_to_geojson(feature))

    return {
        "type": "FeatureCollection",
        "crs": {"type": "name", "properties": {"name": collection.crs}},
        "features": features,
    }


def _feature_to_geojson(feature: Feature) -> dict:
    """Convert a Feature to a GeoJSON Feature dict."""
    return {
        "type": "Feature",
        "geometry": feature.geometry.to_geojson(),
        "properties": feature.properties,
    }


def export_geojson(collection: FeatureCollection, name: str = "") -> str:
    """Export a FeatureCollection to an indented GeoJSON string.

    ``name`` is accepted for signature parity with the other exporters;
    GeoJSON has no document name.
    """
    return json.dumps(to_geojson(collection), indent=2, ensure_ascii=False)
