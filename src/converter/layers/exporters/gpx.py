"""Export a FeatureCollection to a GPX 1.1 document.

GPX uses lat/lon attributes on elements (latitude first in attributes).
Internal coordinates are [lng, lat] (GeoJSON convention), so they are
swapped on output.

Only Point features are written, as waypoints. Lines and polygons have no
waypoint form and are left out of the document.
"""

from __future__ import annotations

from converter.layers.exporters.geojson import to_geojson
from converter.layers.exporters.xml import escape_xml, feature_name, format_value
from converter.layers.feature import FeatureCollection

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GPX_CREATOR = "ArcGIS Converter"


def export_gpx(collection: FeatureCollection, name: str) -> str:
    """Export the Point features of a FeatureCollection to a GPX string.

    Args:
        collection: The collection to export.
        name: Layer name written into the GPX metadata.

    Returns:
        GPX XML string.
    """
    waypoints = []
    for gj_feature in to_geojson(collection)["features"]:
        geometry = gj_feature.get("geometry")
        if geometry and geometry["type"] == "Point":
            waypoints.append(_waypoint(geometry["coordinates"], gj_feature.get("properties") or {}))

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<gpx version="1.1" creator="{GPX_CREATOR}"\n'
        f'    xmlns="{GPX_NAMESPACE}"\n'
        '    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"\n'
        f'    xsi:schemaLocation="{GPX_NAMESPACE} {GPX_NAMESPACE}/gpx.xsd">\n'
        "    <metadata>\n"
        f"        <name>{escape_xml(name)}</name>\n"
        f"    </metadata>{''.join(waypoints)}\n"
        "</gpx>"
    )


def _waypoint(coords: list, props: dict) -> str:
    """Render a Point as a <wpt> element."""
    desc = ", ".join(f"{key}: {format_value(value)}" for key, value in props.items())
    return (
        f'\n    <wpt lat="{format_value(coords[1])}" lon="{format_value(coords[0])}">\n'
        f"        <name>{escape_xml(feature_name(props, 'Waypoint'))}</name>\n"
        f"        <desc>{escape_xml(desc)}</desc>\n"
        "    </wpt>"
    )
