"""ArcGIS Converter - fetch ArcGIS layers and export GeoJSON / KML / GPX.

Main FastAPI application.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import settings
from app.routers.converter import router as converter_router
from converter.arcgis.client import ArcGISClient
from converter.layers.worker import FeatureWorker
from converter.session import ConverterSession


def configure_logging() -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else settings.log_level.upper())


def create_session() -> ConverterSession:
    """Build a ConverterSession from settings."""
    client = ArcGISClient(
        portal_url=settings.portal_url,
        token=settings.arcgis_token,
        timeout=settings.request_timeout,
        out_sr=settings.out_sr,
        user_agent=settings.user_agent,
    )
    return ConverterSession(
        client,
        worker=FeatureWorker(settings.worker_processes),
        status_history=settings.status_history,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()
    logger.info(f"{settings.app_name} v0.1.0 starting (portal: {settings.portal_url})")

    app.state.session = create_session()

    yield

    logger.info("Shutting down...")
    app.state.session.worker.shutdown()


app = FastAPI(
    title=settings.app_name,
    description="Export ArcGIS Feature/Map Service layers to GeoJSON, KML and GPX",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(converter_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": "0.1.0",
        "system": settings.app_name,
    }


def run() -> None:
    """Serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
