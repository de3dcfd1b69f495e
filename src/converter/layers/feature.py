"""Canonical geometry, feature and feature-collection types.

All coordinates are stored in GeoJSON convention: [lng, lat]. Features are
normalized from ArcGIS JSON before they land here (see geometry.py), so the
rest of the pipeline only ever sees these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

CRS84 = "urn:ogc:def:crs:OGC:1.3:CRS84"


@dataclass(frozen=True)
class Geometry:
    """Base of the closed geometry family (Point, LineString, Polygon)."""

    type: ClassVar[str] = ""

    coordinates: list

    def to_geojson(self) -> dict:
        return {"type": self.type, "coordinates": self.coordinates}


@dataclass(frozen=True)
class Point(Geometry):
    """coordinates: [lng, lat]"""

    type: ClassVar[str] = "Point"


@dataclass(frozen=True)
class LineString(Geometry):
    """coordinates: [[lng, lat], [lng, lat], ...]"""

    type: ClassVar[str] = "LineString"


@dataclass(frozen=True)
class Polygon(Geometry):
    """coordinates: [[[lng, lat], ...], ...] (list of rings, outer first)."""

    type: ClassVar[str] = "Polygon"


@dataclass
class Feature:
    """A normalized geometry paired with its flat attribute mapping.

    Attributes:
        geometry: Canonical geometry, or None when the source geometry was
            missing or unrecognized. Such features never reach an exporter.
        properties: ArcGIS attributes, passed through without renaming or
            type coercion. None when the source feature had no attributes.
    """

    geometry: Geometry | None
    properties: dict | None = field(default_factory=dict)


@dataclass
class FeatureCollection:
    """An ordered batch of features in geographic WGS84 (CRS84)."""

    features: list[Feature] = field(default_factory=list)
    crs: str = CRS84

    def __len__(self) -> int:
        return len(self.features)
