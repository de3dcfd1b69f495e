"""Tests for build_collection — raw query features to FeatureCollection."""

import pytest

from converter.layers import CRS84, FeatureCollection, Point, build_collection


@pytest.mark.unit
class TestBuildCollection:
    """Normalization, attribute pass-through, filtering and ordering."""

    def test_properties_pass_through(self):
        attrs = {"OBJECTID": 7, "name": "Gate", "open": True, "area": None}
        collection = build_collection([{"geometry": {"x": 1, "y": 2}, "attributes": attrs}])
        assert len(collection) == 1
        assert collection.features[0].properties == attrs
        assert isinstance(collection.features[0].geometry, Point)

    def test_features_without_geometry_are_dropped(self):
        collection = build_collection([
            {"geometry": {"x": 1, "y": 2}, "attributes": {"id": "a"}},
            {"geometry": None, "attributes": {"id": "b"}},
            {"geometry": {"curveRings": []}, "attributes": {"id": "c"}},
            {"attributes": {"id": "d"}},
            {"geometry": {"paths": [[[0, 0], [1, 1]]]}, "attributes": {"id": "e"}},
        ])
        assert [f.properties["id"] for f in collection.features] == ["a", "e"]

    def test_order_is_preserved(self):
        raw = [{"geometry": {"x": i, "y": i}, "attributes": {"i": i}} for i in range(5, 0, -1)]
        collection = build_collection(raw)
        assert [f.properties["i"] for f in collection.features] == [5, 4, 3, 2, 1]

    def test_empty_list_gives_empty_collection(self):
        collection = build_collection([])
        assert isinstance(collection, FeatureCollection)
        assert collection.features == []

    def test_none_means_no_data(self):
        assert build_collection(None) is None

    def test_collection_is_crs84(self):
        assert build_collection([]).crs == CRS84 == "urn:ogc:def:crs:OGC:1.3:CRS84"

    def test_missing_attributes_pass_through(self):
        collection = build_collection([
            {"geometry": {"x": 1, "y": 2}},
            {"geometry": {"x": 3, "y": 4}, "attributes": None},
        ])
        assert [f.properties for f in collection.features] == [None, None]
