"""API routers for the ArcGIS Converter."""

from app.routers.converter import router as converter_router

__all__ = ["converter_router"]
