"""ArcGIS REST access and layer discovery."""

from converter.arcgis.client import ArcGISClient
from converter.arcgis.grouping import classify_layer, group_layers
from converter.arcgis.resolver import LayerDescriptor, LayerGraphResolver, parse_item_id

__all__ = [
    "ArcGISClient",
    "LayerDescriptor",
    "LayerGraphResolver",
    "classify_layer",
    "group_layers",
    "parse_item_id",
]
