"""Bucket resolved layers into coarse categories for presentation."""

from __future__ import annotations

from converter.arcgis.resolver import LayerDescriptor

CATEGORIES = ("feature", "tiled", "imagery", "other")

_TYPE_CATEGORIES = {
    "Feature Layer": "feature",
    "Feature Collection": "feature",
    "Tiled Layer": "tiled",
    "Imagery Layer": "imagery",
    "ImageServer": "imagery",
}


def classify_layer(layer_type: str | None) -> str:
    """Category of an ArcGIS layer type: feature, tiled, imagery or other."""
    return _TYPE_CATEGORIES.get(layer_type or "", "other")


def group_layers(descriptors: list[LayerDescriptor]) -> dict[str, list[LayerDescriptor]]:
    """Group descriptors by category, keeping their order within each group."""
    groups: dict[str, list[LayerDescriptor]] = {category: [] for category in CATEGORIES}
    for descriptor in descriptors:
        groups[classify_layer(descriptor.type)].append(descriptor)
    return groups
