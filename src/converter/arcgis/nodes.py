"""Operational-layer nodes of a Web Map.

Web Map layer entries are loosely typed JSON objects. ``parse_node`` turns
each one into exactly one of the node classes below, deciding by which
fields are present in this order:

    layers              -> GroupNode
    url                 -> ServiceNode
    itemId              -> ItemNode
    featureCollection   -> FeatureCollectionNode
    layerType == "ArcGISFeatureLayer" -> FeatureLayerNode
    anything else       -> UnresolvedNode
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class GroupNode:
    id: str | None
    title: str | None
    children: tuple = ()


@dataclass(frozen=True)
class ServiceNode:
    id: str | None
    title: str | None
    url: str
    layer_type: str | None = None


@dataclass(frozen=True)
class ItemNode:
    id: str | None
    title: str | None
    item_id: str


@dataclass(frozen=True)
class FeatureCollectionNode:
    id: str | None
    title: str | None
    collection: dict = field(default_factory=dict)
    geometry_type: str | None = None


@dataclass(frozen=True)
class FeatureLayerNode:
    id: str | None
    title: str | None
    url: str | None = None


@dataclass(frozen=True)
class UnresolvedNode:
    raw: dict = field(default_factory=dict)


LayerNode = Union[
    GroupNode, ServiceNode, ItemNode, FeatureCollectionNode, FeatureLayerNode, UnresolvedNode
]


def _node_id(raw: dict) -> str | None:
    value = raw.get("id")
    return None if value is None else str(value)


def parse_node(raw: dict) -> LayerNode:
    """Classify one operational-layer entry."""
    if not isinstance(raw, dict):
        return UnresolvedNode({"value": raw})

    node_id = _node_id(raw)
    title = raw.get("title")

    if raw.get("layers") is not None:
        return GroupNode(node_id, title, tuple(parse_node(child) for child in raw["layers"]))
    if raw.get("url"):
        return ServiceNode(node_id, title, raw["url"], raw.get("layerType"))
    if raw.get("itemId"):
        return ItemNode(node_id, title, raw["itemId"])
    if raw.get("featureCollection") is not None:
        return FeatureCollectionNode(node_id, title, raw["featureCollection"], raw.get("geometryType"))
    if raw.get("layerType") == "ArcGISFeatureLayer":
        return FeatureLayerNode(node_id, title, raw.get("url"))
    return UnresolvedNode(raw)
