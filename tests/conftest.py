"""Shared fixtures: an in-memory ArcGIS REST server behind httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from converter.arcgis.client import ArcGISClient
from converter.session import ConverterSession

SERVER = "https://services.example.com/arcgis/rest/services/Parks/FeatureServer"
PORTAL = "https://www.arcgis.com"


class FakeArcGIS:
    """Serves canned JSON documents keyed by URL (query string ignored).

    A route value may be a dict (200 JSON) or an ``(status, body)`` tuple.
    Every request is recorded in ``requests``.
    """

    def __init__(self, routes: dict | None = None) -> None:
        self.routes: dict = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def add(self, url: str, response) -> None:
        self.routes[url] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={})
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=route)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def point_feature(x, y, **attrs) -> dict:
    return {"geometry": {"x": x, "y": y}, "attributes": attrs}


@pytest.fixture
def fake_arcgis():
    return FakeArcGIS()


@pytest.fixture
def client(fake_arcgis):
    return ArcGISClient(portal_url=PORTAL, transport=fake_arcgis.transport)


@pytest.fixture
def session(client):
    return ConverterSession(client)


@pytest.fixture
def parks_server(fake_arcgis):
    """A Feature Server with a point layer (0) and a polygon layer (1)."""
    fake_arcgis.add(SERVER, {
        "name": "Parks",
        "layers": [
            {"id": 0, "name": "Park Entrances", "type": "Feature Layer", "geometryType": "esriGeometryPoint"},
            {"id": 1, "name": "Park Boundaries", "type": "Feature Layer", "geometryType": "esriGeometryPolygon"},
        ],
    })
    fake_arcgis.add(f"{SERVER}/0", {
        "id": 0, "name": "Park Entrances", "type": "Feature Layer",
        "geometryType": "esriGeometryPoint",
        "drawingInfo": {"renderer": {"type": "simple"}},
    })
    fake_arcgis.add(f"{SERVER}/0/query", {
        "features": [
            point_feature(-122.4, 37.8, name="North Gate", OBJECTID=1),
            point_feature(-122.5, 37.7, name="South Gate", OBJECTID=2),
        ],
    })
    fake_arcgis.add(f"{SERVER}/1", {
        "id": 1, "name": "Park Boundaries", "type": "Feature Layer",
        "geometryType": "esriGeometryPolygon",
    })
    fake_arcgis.add(f"{SERVER}/1/query", {
        "features": [
            {
                "geometry": {"rings": [[[0, 0], [1, 0], [1, 1], [0, 0]]]},
                "attributes": {"NAME": "Golden Gate Park"},
            },
        ],
    })
    return fake_arcgis


@pytest.fixture
def server_url():
    return SERVER
