"""ArcGIS Converter web service."""
