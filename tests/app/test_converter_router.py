"""Unit tests for the converter router.

Endpoints are exercised through TestClient against a session whose ArcGIS
client talks to an in-memory MockTransport (no external API calls).
"""
from __future__ import annotations

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.routers.converter import router

ITEMS = "https://www.arcgis.com/sharing/rest/content/items"


def _make_app(session):
    app = FastAPI()
    app.include_router(router)
    app.state.session = session
    return app


@pytest.fixture
def api(session, parks_server):
    return TestClient(_make_app(session))


@pytest.mark.unit
class TestLayersEndpoints:
    """POST/GET/DELETE /api/converter/layers"""

    def test_open_feature_server(self, api, server_url):
        resp = api.post("/api/converter/layers", json={"url": server_url})
        assert resp.status_code == 200
        data = resp.json()
        assert data["kind"] == "server"
        assert [layer["name"] for layer in data["layers"]] == ["Park Entrances", "Park Boundaries"]
        assert data["layers"][0]["layerUrl"] == f"{server_url}/0"

    def test_open_single_layer(self, api, server_url):
        resp = api.post("/api/converter/layers", json={"url": f"{server_url}/0"})
        assert resp.status_code == 200
        layer = resp.json()["layer"]
        assert layer["name"] == "Park Entrances"
        assert layer["featureCount"] == 2

    def test_invalid_url(self, api):
        resp = api.post("/api/converter/layers", json={"url": "https://example.com/MapServer"})
        assert resp.status_code == 400

    def test_service_error_is_502(self, api, parks_server, server_url):
        parks_server.add(server_url, {"error": {"message": "Invalid Token"}})
        resp = api.post("/api/converter/layers", json={"url": server_url})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Feature Server Error: Invalid Token"

    def test_select_list_and_remove(self, api, server_url):
        resp = api.post(
            "/api/converter/layers/select",
            json={"service_url": server_url, "layer_ids": ["0", "1", "7"]},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["added"]) == 2
        assert len(data["errors"]) == 1

        listed = api.get("/api/converter/layers").json()
        assert [layer["url"] for layer in listed] == [f"{server_url}/0", f"{server_url}/1"]

        resp = api.delete("/api/converter/layers", params={"url": f"{server_url}/0"})
        assert resp.status_code == 200
        resp = api.delete("/api/converter/layers", params={"url": f"{server_url}/0"})
        assert resp.status_code == 404


@pytest.mark.unit
class TestExportEndpoint:
    """GET /api/converter/export/{fmt}"""

    def test_geojson_download(self, api, server_url):
        api.post("/api/converter/layers", json={"url": f"{server_url}/0"})
        resp = api.get("/api/converter/export/geojson", params={"url": f"{server_url}/0"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/geo+json")
        assert 'filename="Park_Entrances.geojson"' in resp.headers["content-disposition"]
        assert len(json.loads(resp.text)["features"]) == 2

    def test_kml_download(self, api, server_url):
        api.post("/api/converter/layers", json={"url": f"{server_url}/1"})
        resp = api.get("/api/converter/export/kml", params={"url": f"{server_url}/1"})
        assert resp.status_code == 200
        assert "<name>Golden Gate Park</name>" in resp.text

    def test_shapefile_is_415(self, api, server_url):
        api.post("/api/converter/layers", json={"url": f"{server_url}/0"})
        resp = api.get("/api/converter/export/shapefile", params={"url": f"{server_url}/0"})
        assert resp.status_code == 415

    def test_unknown_layer_is_404(self, api, server_url):
        resp = api.get("/api/converter/export/kml", params={"url": f"{server_url}/9"})
        assert resp.status_code == 404

    @pytest.mark.parametrize("name, ascii_name, quoted", [
        ("Parques Región", "Parques_Region.geojson", "Parques_Regi%C3%B3n.geojson"),
        ("גנים", ".geojson", "%D7%92%D7%A0%D7%99%D7%9D.geojson"),
        ('Say "hi"', "Say_hi.geojson", "Say_%22hi%22.geojson"),
    ])
    def test_non_ascii_layer_name(self, api, parks_server, server_url, name, ascii_name, quoted):
        parks_server.add(f"{server_url}/2", {"id": 2, "name": name, "type": "Feature Layer"})
        parks_server.add(f"{server_url}/2/query", {"features": [{"geometry": {"x": 1, "y": 2}, "attributes": {}}]})
        api.post("/api/converter/layers", json={"url": f"{server_url}/2"})

        resp = api.get("/api/converter/export/geojson", params={"url": f"{server_url}/2"})
        assert resp.status_code == 200
        disposition = resp.headers["content-disposition"]
        assert f'filename="{ascii_name}"' in disposition
        assert disposition.endswith(f"filename*=UTF-8''{quoted}")


@pytest.mark.unit
class TestItemsAndShare:
    def test_resolve_web_map(self, api, parks_server, server_url):
        item_id = "0123456789abcdef0123456789abcdef"
        parks_server.add(f"{ITEMS}/{item_id}", {"id": item_id, "type": "Web Map"})
        parks_server.add(f"{ITEMS}/{item_id}/data", {
            "operationalLayers": [{"id": "p", "title": "Parks", "url": server_url}],
        })
        resp = api.post("/api/converter/items/resolve", json={"item": item_id})
        assert resp.status_code == 200
        data = resp.json()
        assert [layer["name"] for layer in data["feature"]] == ["Park Entrances", "Park Boundaries"]
        assert data["feature"][0]["parentLayerName"] == "Parks"
        assert data["imagery"] == []

    def test_resolve_unsupported_item(self, api, parks_server):
        item_id = "fedcba9876543210fedcba9876543210"
        parks_server.add(f"{ITEMS}/{item_id}", {"id": item_id, "type": "Dashboard"})
        resp = api.post("/api/converter/items/resolve", json={"item": item_id})
        assert resp.status_code == 415

    def test_resolve_bad_item(self, api):
        resp = api.post("/api/converter/items/resolve", json={"item": "nope"})
        assert resp.status_code == 400

    def test_share(self, api, server_url):
        api.post("/api/converter/layers", json={"url": f"{server_url}/0"})
        resp = api.get("/api/converter/share", params={"base": "http://app/", "export": "kml"})
        assert resp.status_code == 200
        assert resp.json()["url"].startswith("http://app/?url=")
        assert resp.json()["url"].endswith("&export=kml")

    def test_status_messages(self, api, server_url):
        api.post("/api/converter/layers", json={"url": f"{server_url}/0"})
        messages = api.get("/api/converter/status").json()
        assert messages[0] == {"text": "Fetching layer information...", "level": "info"}

    def test_item_without_url_is_skipped(self, api, parks_server, server_url):
        item_id = "00000000000000000000000000000abc"
        parks_server.add(f"{ITEMS}/{item_id}", {"id": item_id, "type": "Web Map"})
        parks_server.add(f"{ITEMS}/{item_id}/data", {"operationalLayers": [
            {"id": "s", "title": "Sketch", "itemId": "sketch"},
            {"id": "p", "title": "Parks", "url": server_url},
        ]})
        parks_server.add(f"{ITEMS}/sketch", {"id": "sketch", "type": "Feature Collection"})
        resp = api.post("/api/converter/items/resolve", json={"item": item_id})
        assert resp.status_code == 200
        assert len(resp.json()["feature"]) == 2


@pytest.mark.unit
class TestSelectAndReplay:
    """POST /api/converter/items/select and /api/converter/share/load"""

    def test_select_resolved_layers(self, api, parks_server, server_url):
        item_id = "0123456789abcdef0123456789abcdef"
        parks_server.add(f"{ITEMS}/{item_id}", {"id": item_id, "type": "Web Map"})
        parks_server.add(f"{ITEMS}/{item_id}/data", {
            "operationalLayers": [{"id": "g", "title": "Gates", "url": f"{server_url}/0"}],
        })
        [layer] = api.post("/api/converter/items/resolve", json={"item": item_id}).json()["feature"]
        assert layer["layerUrl"] == f"{server_url}/0"

        resp = api.post("/api/converter/items/select", json={"keys": [layer["key"], "missing"]})
        assert resp.status_code == 200
        data = resp.json()
        assert [r["url"] for r in data["added"]] == [f"{server_url}/0"]
        assert data["errors"] == ["Error adding layer missing: not found in the resolved item"]

    def test_load_share_url(self, api, server_url):
        share = f"http://app/?urls={server_url}/0,{server_url}/1&export=kml"
        resp = api.post("/api/converter/share/load", json={"url": share})
        assert resp.status_code == 200
        data = resp.json()
        assert [layer["url"] for layer in data["layers"]] == [f"{server_url}/0", f"{server_url}/1"]
        assert [f["filename"] for f in data["exported"]] == ["Park_Entrances.kml", "Park_Boundaries.kml"]
        assert data["errors"] == []

        resp = api.get("/api/converter/export/kml", params={"url": f"{server_url}/1"})
        assert resp.status_code == 200

    def test_load_share_without_layers(self, api):
        resp = api.post("/api/converter/share/load", json={"url": "http://app/"})
        assert resp.status_code == 200
        assert resp.json() == {"layers": [], "exported": [], "errors": []}
