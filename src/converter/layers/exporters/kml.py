"""Export a FeatureCollection to a KML 2.2 document.

KML coordinates are in "lng,lat,alt" order (longitude first); altitude is
always written as 0. Polygons are written with their outer ring only.
"""

from __future__ import annotations

from converter.layers.exporters.geojson import to_geojson
from converter.layers.exporters.xml import escape_xml, feature_name, format_value
from converter.layers.feature import FeatureCollection

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"


def export_kml(collection: FeatureCollection, name: str) -> str:
    """Export a FeatureCollection to a KML string.

    Args:
        collection: The collection to export.
        name: Layer name written as the Document name.

    Returns:
        KML XML string with one Placemark per feature that has a geometry.
    """
    placemarks = []
    for gj_feature in to_geojson(collection)["features"]:
        placemark = _placemark(gj_feature)
        if placemark:
            placemarks.append(placemark)

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<kml xmlns="{KML_NAMESPACE}">\n'
        "    <Document>\n"
        f"        <name>{escape_xml(name)}</name>{''.join(placemarks)}\n"
        "    </Document>\n"
        "</kml>"
    )


def _placemark(gj_feature: dict) -> str:
    """Render one GeoJSON feature as a Placemark, or "" without geometry."""
    geometry = _geometry_string(gj_feature.get("geometry"))
    if not geometry:
        return ""

    props = gj_feature.get("properties") or {}
    description = "<br>".join(
        f"<strong>{key}:</strong> {format_value(value)}" for key, value in props.items()
    )
    return (
        "\n            <Placemark>\n"
        f"                <name>{escape_xml(feature_name(props, 'Feature'))}</name>\n"
        f"                <description><![CDATA[{description}]]></description>\n"
        f"                {geometry}\n"
        "            </Placemark>"
    )


def _coords_to_string(coord: list) -> str:
    """Convert a single [lng, lat] to 'lng,lat,0'."""
    return f"{format_value(coord[0])},{format_value(coord[1])},0"


def _coords_list(coords: list) -> str:
    return " ".join(_coords_to_string(c) for c in coords)


def _geometry_string(geometry: dict | None) -> str:
    if not geometry:
        return ""

    coords = geometry["coordinates"]
    gtype = geometry["type"]
    if gtype == "Point":
        return f"<Point><coordinates>{_coords_to_string(coords)}</coordinates></Point>"
    if gtype == "LineString":
        return f"<LineString><coordinates>{_coords_list(coords)}</coordinates></LineString>"
    if gtype == "Polygon":
        if not coords:
            return ""
        # Inner rings (holes) are not written.
        return (
            "<Polygon><outerBoundaryIs><LinearRing>"
            f"<coordinates>{_coords_list(coords[0])}</coordinates>"
            "</LinearRing></outerBoundaryIs></Polygon>"
        )
    return ""
