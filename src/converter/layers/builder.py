"""Build canonical FeatureCollections from raw ArcGIS query features."""

from __future__ import annotations

from converter.layers.feature import Feature, FeatureCollection
from converter.layers.geometry import normalize_geometry


def to_feature(raw_feature: dict) -> Feature:
    """Pair a raw feature's normalized geometry with its attributes.

    Attributes pass through as-is; a feature without them keeps None.
    """
    return Feature(
        geometry=normalize_geometry(raw_feature.get("geometry")),
        properties=raw_feature.get("attributes"),
    )


def normalize_features(raw_features: list[dict]) -> list[Feature]:
    """Normalize raw features, dropping those without a usable geometry.

    Input order is preserved.
    """
    features = []
    for raw in raw_features:
        feature = to_feature(raw)
        if feature.geometry is not None:
            features.append(feature)
    return features


def build_collection(raw_features: list[dict] | None) -> FeatureCollection | None:
    """Build a FeatureCollection from the ``features`` of a query response.

    Args:
        raw_features: List of ``{"geometry": ..., "attributes": ...}`` dicts.

    Returns:
        The collection (empty for an empty list), or None when there is no
        feature list at all. None means "no data" and is not exportable.
    """
    if raw_features is None:
        return None
    return FeatureCollection(features=normalize_features(raw_features))
