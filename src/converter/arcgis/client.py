"""Async ArcGIS REST client.

Fetches service metadata, layer metadata, portal items, Web Map data and
feature queries as JSON. Every response is checked the same way: a non-2xx
status is a TransportError, and a document carrying an ``error`` object is a
ServiceError raised before any other field is looked at.
"""

from __future__ import annotations

import httpx
from loguru import logger

from converter.errors import FormatError, ServiceError, TransportError

DEFAULT_PORTAL_URL = "https://www.arcgis.com"
DEFAULT_USER_AGENT = "ArcGIS-Converter/0.1.0"


class ArcGISClient:
    """Thin JSON fetcher for ArcGIS Feature/Map Services and portal items.

    Args:
        portal_url: Portal hosting items (``/sharing/rest/content/items``).
        token: Optional token sent with every request.
        timeout: Per-request timeout in seconds.
        out_sr: Spatial reference requested for query geometries.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        portal_url: str = DEFAULT_PORTAL_URL,
        token: str | None = None,
        timeout: float = 30.0,
        out_sr: int = 4326,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.portal_url = portal_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.out_sr = out_sr
        self.user_agent = user_agent
        self._transport = transport

    async def fetch_json(self, url: str, params: dict | None = None, context: str = "resource") -> dict:
        """GET ``url`` with ``f=json`` and return the decoded document.

        Args:
            url: Endpoint URL.
            params: Extra query parameters.
            context: Label used in error messages ("Feature Server", "Layer", ...).

        Raises:
            TransportError: Network failure or non-success status.
            ServiceError: The document carries an ``error`` object.
        """
        query = {"f": "json"}
        if params:
            query.update(params)
        if self.token:
            query["token"] = self.token

        logger.debug(f"GET {url} ({context})")
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                resp = await client.get(url, params=query, headers={"User-Agent": self.user_agent})
            except httpx.HTTPError as e:
                raise TransportError(f"Failed to fetch {context}: {e}") from e

        if not resp.is_success:
            raise TransportError(f"Failed to fetch {context}: {resp.reason_phrase or resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise FormatError(f"{context} returned invalid JSON") from e

        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ServiceError(f"{context} Error: {message}")
        return data

    async def get_service(self, service_url: str) -> dict:
        """Metadata of a Feature/Map/Image Service."""
        return await self.fetch_json(service_url, context="Feature Server")

    async def get_layer(self, service_url: str, layer_id) -> dict:
        """Metadata of one layer of a service."""
        return await self.fetch_json(f"{service_url.rstrip('/')}/{layer_id}", context="Layer")

    async def get_item(self, item_id: str) -> dict:
        """Portal item metadata (id, title, type, url)."""
        return await self.fetch_json(f"{self.portal_url}/sharing/rest/content/items/{item_id}", context="Item")

    async def get_item_data(self, item_id: str) -> dict:
        """Portal item data; for a Web Map this holds ``operationalLayers``."""
        return await self.fetch_json(
            f"{self.portal_url}/sharing/rest/content/items/{item_id}/data", context="Web Map"
        )

    async def query_features(self, layer_url: str) -> list[dict]:
        """Query every feature of a layer, geometries in ``out_sr``.

        Raises:
            FormatError: The response has no ``features`` list.
        """
        data = await self.fetch_json(
            f"{layer_url.rstrip('/')}/query",
            params={
                "where": "1=1",
                "outFields": "*",
                "returnGeometry": "true",
                "outSR": str(self.out_sr),
            },
            context="Feature Query",
        )
        features = data.get("features")
        if not isinstance(features, list):
            raise FormatError("No features found or invalid feature data format.")
        logger.debug(f"{layer_url}: {len(features)} features")
        return features
