"""Converter API — add ArcGIS layers, resolve Web Map items, export layers.

The session lives on ``app.state.session``; see app.main for how it is
created.
"""

from __future__ import annotations

import unicodedata
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel

from converter.arcgis.grouping import group_layers
from converter.errors import ConverterError, UnsupportedFormatError
from converter.layers.exporters import get_format
from converter.layers.store import LayerRecord
from converter.session import ConverterSession

router = APIRouter(prefix="/api/converter", tags=["converter"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class OpenUrlRequest(BaseModel):
    """A Feature Server URL or a single layer URL."""
    url: str


class SelectLayersRequest(BaseModel):
    """Layers of a Feature Server to add."""
    service_url: str
    layer_ids: list[str]


class ResolveItemRequest(BaseModel):
    """A portal item id or item URL."""
    item: str


class SelectResolvedRequest(BaseModel):
    """Descriptor keys (``key`` of /items/resolve output) to add."""
    keys: list[str]


class LoadShareRequest(BaseModel):
    """A shareable URL, or just its query string."""
    url: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def get_session(request: Request) -> ConverterSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Converter session not initialized")
    return session


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, UnsupportedFormatError):
        return HTTPException(status_code=415, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.warning(f"ArcGIS request failed: {e}")
    return HTTPException(status_code=502, detail=str(e))


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    ascii_name = ascii_name.replace('"', "").replace("\\", "")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _record_summary(record: LayerRecord) -> dict:
    return {
        "url": record.layer_url,
        "name": record.name,
        "type": record.metadata.get("type"),
        "geometryType": record.metadata.get("geometryType"),
        "featureCount": len(record.features or []),
        "addedAt": record.added_at,
    }


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

@router.post("/layers")
async def open_url(body: OpenUrlRequest, session: ConverterSession = Depends(get_session)):
    """Open a Feature Server (returns its layers) or add a single layer."""
    try:
        result = await session.open_url(body.url)
    except (ConverterError, ValueError) as e:
        raise _http_error(e)

    if isinstance(result, list):
        return {"kind": "server", "url": session.current_server, "layers": [d.to_dict() for d in result]}
    return {"kind": "layer", "layer": _record_summary(result)}


@router.post("/layers/select")
async def select_layers(body: SelectLayersRequest, session: ConverterSession = Depends(get_session)):
    """Add the selected layers of a Feature Server, one after another."""
    try:
        service_url = session.validate_url(body.service_url)
    except ValueError as e:
        raise _http_error(e)

    report = await session.add_layers(service_url, body.layer_ids)
    return {
        "added": [_record_summary(r) for r in report.added],
        "errors": report.errors,
    }


@router.get("/layers")
async def list_layers(session: ConverterSession = Depends(get_session)):
    """Layers currently held by the session."""
    return [_record_summary(r) for r in session.store.list()]


@router.delete("/layers")
async def remove_layer(url: str = Query(...), session: ConverterSession = Depends(get_session)):
    """Remove a layer by its layer URL."""
    if not session.remove_layer(url):
        raise HTTPException(status_code=404, detail=f"Layer not found: {url}")
    return {"removed": url}


# ---------------------------------------------------------------------------
# Portal items
# ---------------------------------------------------------------------------

@router.post("/items/resolve")
async def resolve_item(body: ResolveItemRequest, session: ConverterSession = Depends(get_session)):
    """Resolve a Web Map or service item into layers grouped by category."""
    try:
        descriptors = await session.resolve_item(body.item)
    except (ConverterError, ValueError) as e:
        raise _http_error(e)

    return {
        category: [d.to_dict() for d in layers]
        for category, layers in group_layers(descriptors).items()
    }


@router.post("/items/select")
async def select_resolved(body: SelectResolvedRequest, session: ConverterSession = Depends(get_session)):
    """Add layers of the last resolved item, picked by descriptor key."""
    report = await session.add_resolved(body.keys)
    return {
        "added": [_record_summary(r) for r in report.added],
        "errors": report.errors,
    }


# ---------------------------------------------------------------------------
# Export / share
# ---------------------------------------------------------------------------

@router.get("/export/{fmt}")
async def export_layer(
    fmt: str,
    url: str = Query(..., description="Layer URL to export"),
    session: ConverterSession = Depends(get_session),
):
    """Export one layer and return it as a file download."""
    if url not in session.store:
        raise HTTPException(status_code=404, detail=f"Layer not found: {url}")
    try:
        get_format(fmt)
    except UnsupportedFormatError as e:
        raise _http_error(e)

    report = await session.export([fmt], layer_urls=[url])
    if not report.files:
        detail = report.errors[0] if report.errors else "Export failed."
        raise HTTPException(status_code=422, detail=detail)

    exported = report.files[0]
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": _content_disposition(exported.filename)},
    )


@router.get("/share")
async def share_url(
    base: str = Query("http://localhost:8000/"),
    export: Optional[str] = Query(None),
    session: ConverterSession = Depends(get_session),
):
    """Shareable URL reproducing the loaded layers and export format."""
    return {"url": session.share_url(base, [export] if export else None)}


@router.post("/share/load")
async def load_share(body: LoadShareRequest, session: ConverterSession = Depends(get_session)):
    """Replay a shareable URL: load its layers, then run its export.

    Exported documents are listed by name; download them with /export.
    """
    report = await session.load_shared(body.url)
    return {
        "layers": [_record_summary(r) for r in session.store.list()],
        "exported": [
            {"url": f.layer_url, "format": f.format, "filename": f.filename}
            for f in (report.files if report else [])
        ],
        "errors": report.errors if report else [],
    }


@router.get("/status")
async def status_messages(session: ConverterSession = Depends(get_session)):
    """Status messages of the session, oldest first."""
    return [{"text": m.text, "level": m.level} for m in session.messages]
