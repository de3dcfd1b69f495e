"""Normalize ArcGIS JSON geometries into canonical geometries.

ArcGIS returns three geometry shapes from a feature query:

    point     {"x": lng, "y": lat}
    polyline  {"paths": [[[lng, lat], ...], ...]}
    polygon   {"rings": [[[lng, lat], ...], ...]}

Queries are issued with outSR=4326 so x/y are already lng/lat and no
reprojection happens here.
"""

from __future__ import annotations

from converter.layers.feature import Geometry, LineString, Point, Polygon


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _copy_coords(coords: list) -> list[list]:
    return [list(c) for c in coords]


def normalize_geometry(raw: dict | None) -> Geometry | None:
    """Convert one ArcGIS JSON geometry into a Point, LineString or Polygon.

    Only the first path of a polyline is kept. Polygon rings are copied as
    they come, outer and inner rings alike.

    Args:
        raw: The ArcGIS geometry dict, or None.

    Returns:
        The canonical geometry, or None when the shape is not recognized.
    """
    if not raw:
        return None

    if _is_number(raw.get("x")) and _is_number(raw.get("y")):
        return Point([raw["x"], raw["y"]])

    paths = raw.get("paths")
    if paths is not None:
        if not paths:
            return None
        return LineString(_copy_coords(paths[0]))

    rings = raw.get("rings")
    if rings is not None:
        return Polygon([_copy_coords(ring) for ring in rings])

    return None
