"""LayerGraphResolver — flatten ArcGIS service and Web Map layer trees.

A Web Map's ``operationalLayers`` may nest group layers to any depth and may
point at services by URL, at portal items by id, or carry feature
collections inline. The resolver walks that tree depth-first, fetching the
documents it needs one at a time, and returns one LayerDescriptor per
addressable layer. Each descriptor remembers where in the tree it came from
(``parent_path`` holds the ancestor group titles, root first).

Descriptors are not de-duplicated: a service referenced from two branches
shows up twice. Adding a layer is keyed by its URL, so selecting both is
harmless.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger

from converter.arcgis.client import ArcGISClient
from converter.arcgis.nodes import (
    FeatureCollectionNode,
    FeatureLayerNode,
    GroupNode,
    ItemNode,
    LayerNode,
    ServiceNode,
    UnresolvedNode,
    parse_node,
)
from converter.errors import UnsupportedFormatError

IMAGERY_LAYER = "Imagery Layer"
FEATURE_LAYER = "Feature Layer"
FEATURE_COLLECTION = "Feature Collection"
INLINE_SCHEME = "webmap://"

_ITEM_ID_RE = re.compile(r"^[0-9a-fA-F]{32}$")
_ITEM_ID_PARAM_RE = re.compile(r"[?&](?:id|webmap|itemId)=([0-9a-fA-F]{32})")


@dataclass(frozen=True)
class LayerDescriptor:
    """An addressable layer found while resolving a service or Web Map.

    Attributes:
        id: Layer id within its service (or a synthesized id).
        name: Display name.
        type: ArcGIS layer type ("Feature Layer", "Imagery Layer", ...).
        geometry_type: esriGeometry* type, when known.
        service_url: Service the layer belongs to; None for inline layers.
        parent_layer_id: Id of the node this layer was found under.
        parent_layer_name: Title of that node.
        parent_path: Titles of the ancestor groups, root first.
        inline_features: Features carried inside a Web Map feature collection.
    """

    id: str
    name: str
    type: str
    geometry_type: str | None = None
    service_url: str | None = None
    parent_layer_id: str | None = None
    parent_layer_name: str | None = None
    parent_path: tuple[str, ...] = ()
    inline_features: tuple | None = field(default=None, compare=False, repr=False)

    @property
    def layer_url(self) -> str | None:
        """``{service_url}/{id}`` for layers that can be queried."""
        if not self.service_url:
            return None
        return f"{self.service_url.rstrip('/')}/{self.id}"

    @property
    def key(self) -> str:
        """Store key once added: the layer URL, or ``webmap://{id}`` inline."""
        return self.layer_url or f"{INLINE_SCHEME}{self.id}"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "geometryType": self.geometry_type,
            "serviceUrl": self.service_url,
            "layerUrl": self.layer_url,
            "parentLayerId": self.parent_layer_id,
            "parentLayerName": self.parent_layer_name,
            "parentPath": list(self.parent_path),
        }


@dataclass(frozen=True)
class _Lineage:
    """Where in the tree a node sits: enclosing node and ancestor titles."""

    parent_id: str | None = None
    parent_name: str | None = None
    path: tuple[str, ...] = ()

    def enter(self, group: GroupNode) -> _Lineage:
        path = self.path + (group.title,) if group.title else self.path
        return _Lineage(group.id, group.title, path)


def parse_item_id(text: str) -> str | None:
    """Extract a portal item id from a bare id or an item/viewer URL."""
    text = (text or "").strip()
    if _ITEM_ID_RE.match(text):
        return text.lower()
    match = _ITEM_ID_PARAM_RE.search(text)
    if match:
        return match.group(1).lower()
    return None


def _is_image_service(service: dict, url: str) -> bool:
    return service.get("type") == "ImageServer" or url.rstrip("/").endswith("/ImageServer")


class LayerGraphResolver:
    """Resolve services, items and Web Map layer trees into descriptors."""

    def __init__(self, client: ArcGISClient) -> None:
        self.client = client

    # -- entry points -------------------------------------------------------

    async def resolve(self, operational_layers: list[dict]) -> list[LayerDescriptor]:
        """Flatten a Web Map's ``operationalLayers`` list."""
        nodes = [parse_node(raw) for raw in operational_layers or []]
        return await self._resolve_nodes(nodes, _Lineage())

    async def resolve_service(self, service_url: str) -> list[LayerDescriptor]:
        """One descriptor per layer of a Feature/Map Service."""
        service = await self.client.get_service(service_url)
        return [
            self._sublayer(sub, service_url, _Lineage())
            for sub in service.get("layers") or []
        ]

    async def resolve_item(self, item_id: str) -> list[LayerDescriptor]:
        """Resolve a portal item: a Web Map, or a single service.

        Raises:
            UnsupportedFormatError: For item types other than Web Map and
                Feature/Map/Image Service.
        """
        item = await self.client.get_item(item_id)
        item_type = item.get("type")
        logger.info(f"Resolving item {item_id} ({item_type})")

        if item_type == "Web Map":
            data = await self.client.get_item_data(item_id)
            return await self.resolve(data.get("operationalLayers") or [])
        if item_type in ("Feature Service", "Map Service") and item.get("url"):
            return await self.resolve_service(item["url"])
        if item_type == "Image Service":
            return [
                LayerDescriptor(
                    id=str(item.get("id") or item_id),
                    name=item.get("title") or item.get("name") or IMAGERY_LAYER,
                    type=IMAGERY_LAYER,
                    service_url=item.get("url"),
                )
            ]
        raise UnsupportedFormatError(f"Unsupported item type: {item_type}")

    # -- tree walk ----------------------------------------------------------

    async def _resolve_nodes(self, nodes, lineage: _Lineage) -> list[LayerDescriptor]:
        descriptors: list[LayerDescriptor] = []
        for node in nodes:
            descriptors.extend(await self._resolve_node(node, lineage))
        return descriptors

    async def _resolve_node(self, node: LayerNode, lineage: _Lineage) -> list[LayerDescriptor]:
        if isinstance(node, GroupNode):
            return await self._resolve_nodes(node.children, lineage.enter(node))
        if isinstance(node, ServiceNode):
            return await self._resolve_service_node(node, node.url, lineage)
        if isinstance(node, ItemNode):
            item = await self.client.get_item(node.item_id)
            if not item.get("url"):
                logger.debug(f"Skipping item {node.item_id} ({item.get('type')}): no service URL")
                return []
            return await self._resolve_service_node(node, item["url"], lineage)
        if isinstance(node, FeatureCollectionNode):
            return self._resolve_feature_collection(node, lineage)
        if isinstance(node, FeatureLayerNode):
            return [
                LayerDescriptor(
                    id=node.id or "",
                    name=node.title or "",
                    type=FEATURE_LAYER,
                    service_url=node.url or None,
                    parent_layer_id=lineage.parent_id,
                    parent_layer_name=lineage.parent_name,
                    parent_path=lineage.path,
                )
            ]
        if isinstance(node, UnresolvedNode):
            logger.debug(f"Skipping unresolvable layer node: {node.raw.get('title', node.raw)}")
            return []
        raise TypeError(f"Unknown layer node: {node!r}")

    async def _resolve_service_node(self, node, url: str, lineage: _Lineage) -> list[LayerDescriptor]:
        """Dispatch on the service document behind a URL or item node."""
        service = await self.client.get_service(url)

        if service.get("layers"):
            node_lineage = _Lineage(node.id, node.title, lineage.path)
            return [self._sublayer(sub, url, node_lineage) for sub in service["layers"]]

        if _is_image_service(service, url):
            return [
                LayerDescriptor(
                    id=node.id or "",
                    name=node.title or service.get("name") or IMAGERY_LAYER,
                    type=IMAGERY_LAYER,
                    service_url=url,
                    parent_layer_id=lineage.parent_id,
                    parent_layer_name=lineage.parent_name,
                    parent_path=lineage.path,
                )
            ]

        # A layer document: the URL already ends in the layer id.
        layer_id = service.get("id")
        service_url = url.rstrip("/")
        if layer_id is not None and service_url.endswith(f"/{layer_id}"):
            service_url = service_url.rsplit("/", 1)[0]

        return [
            LayerDescriptor(
                id=str(layer_id if layer_id is not None else node.id or ""),
                name=service.get("name") or node.title or "",
                type=service.get("type") or FEATURE_LAYER,
                geometry_type=service.get("geometryType"),
                service_url=service_url,
                parent_layer_id=lineage.parent_id,
                parent_layer_name=lineage.parent_name,
                parent_path=lineage.path,
            )
        ]

    def _resolve_feature_collection(
        self, node: FeatureCollectionNode, lineage: _Lineage
    ) -> list[LayerDescriptor]:
        embedded = node.collection.get("layers")
        if not embedded:
            return [
                LayerDescriptor(
                    id=node.id or "",
                    name=node.title or "",
                    type=FEATURE_COLLECTION,
                    geometry_type=node.geometry_type,
                    parent_layer_id=lineage.parent_id,
                    parent_layer_name=lineage.parent_name,
                    parent_path=lineage.path,
                )
            ]

        descriptors = []
        for index, layer in enumerate(embedded):
            definition = layer.get("layerDefinition") or {}
            feature_set = layer.get("featureSet") or {}
            child_id = definition.get("id", index)
            features = feature_set.get("features")
            descriptors.append(
                LayerDescriptor(
                    id=f"{node.id}_{child_id}",
                    name=definition.get("name") or node.title or "",
                    type=FEATURE_COLLECTION,
                    geometry_type=definition.get("geometryType") or feature_set.get("geometryType"),
                    parent_layer_id=node.id,
                    parent_layer_name=node.title,
                    parent_path=lineage.path,
                    inline_features=tuple(features) if features is not None else None,
                )
            )
        return descriptors

    def _sublayer(self, sub: dict, service_url: str, lineage: _Lineage) -> LayerDescriptor:
        return LayerDescriptor(
            id=str(sub.get("id")),
            name=sub.get("name") or "",
            type=sub.get("type") or FEATURE_LAYER,
            geometry_type=sub.get("geometryType"),
            service_url=service_url,
            parent_layer_id=lineage.parent_id,
            parent_layer_name=lineage.parent_name,
            parent_path=lineage.path,
        )
