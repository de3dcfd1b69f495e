"""ArcGIS Converter — fetch ArcGIS Feature/Map Service layers and export them
as GeoJSON, KML or GPX.
"""

from converter.session import ConverterSession

__all__ = ["ConverterSession"]
