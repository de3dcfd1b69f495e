"""Text helpers shared by the KML and GPX exporters.

Both documents are assembled as text rather than with ElementTree because
KML descriptions go out as raw CDATA and escaping follows the converter's
own entity table (which includes ``/``), neither of which ElementTree
produces.
"""

from __future__ import annotations

_ENTITIES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    "'": "&apos;",
    '"': "&quot;",
    "/": "&#x2F;",
}

NAME_KEYS = ("name", "Name", "NAME")


def format_value(value) -> str:
    """Render a scalar the way it appears in exported documents."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_xml(value) -> str:
    """Escape text content for XML; None becomes the empty string."""
    if value is None:
        return ""
    return "".join(_ENTITIES.get(c, c) for c in format_value(value))


def feature_name(properties: dict, default: str) -> str:
    """First truthy value of name / Name / NAME, else ``default``."""
    for key in NAME_KEYS:
        value = properties.get(key)
        if value:
            return value
    return default
