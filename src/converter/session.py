"""ConverterSession — the application state of one converter user.

Holds the added layers (a LayerStore keyed by layer URL), the ArcGIS client
and resolver, the feature worker, and a log of status messages. Every
operation runs its fetches one after another, so status messages and store
changes happen in input order.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from loguru import logger

from converter.arcgis.client import ArcGISClient
from converter.arcgis.resolver import INLINE_SCHEME, LayerDescriptor, LayerGraphResolver, parse_item_id
from converter.errors import ConverterError, UnsupportedFormatError
from converter.layers.exporters import export_filename, get_format
from converter.layers.feature import FeatureCollection
from converter.layers.store import LayerRecord, LayerStore
from converter.layers.worker import FeatureWorker
from converter.share import ShareState, decode_share_params, encode_share_url

STATUS_HISTORY = 200

_LOG_LEVELS = {"info": "INFO", "success": "SUCCESS", "warning": "WARNING", "error": "ERROR"}


@dataclass
class StatusMessage:
    text: str
    level: str = "info"


@dataclass
class ExportedFile:
    """A rendered document ready to be offered as a download."""

    layer_url: str
    format: str
    filename: str
    media_type: str
    content: str


@dataclass
class ExportReport:
    files: list[ExportedFile] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class AddReport:
    added: list[LayerRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class ConverterSession:
    """Add, remove, export and share ArcGIS layers."""

    def __init__(
        self,
        client: ArcGISClient,
        worker: FeatureWorker | None = None,
        store: LayerStore | None = None,
        status_history: int = STATUS_HISTORY,
    ) -> None:
        self.client = client
        self.resolver = LayerGraphResolver(client)
        self.worker = worker or FeatureWorker()
        self.store = store or LayerStore()
        self.current_server: str | None = None
        # Descriptors of the last resolve_item, by key.
        self.resolved: dict[str, LayerDescriptor] = {}
        # Oldest messages fall off once the history is full.
        self.messages: deque[StatusMessage] = deque(maxlen=status_history)

    # -- status -------------------------------------------------------------

    def set_status(self, text: str, level: str = "info") -> None:
        logger.log(_LOG_LEVELS.get(level, "INFO"), text)
        self.messages.append(StatusMessage(text, level))

    @property
    def status(self) -> StatusMessage | None:
        return self.messages[-1] if self.messages else None

    # -- adding layers ------------------------------------------------------

    @staticmethod
    def validate_url(url: str) -> str:
        """Check that ``url`` is an http(s) Feature Server or layer URL.

        Raises:
            ValueError: When it is not.
        """
        url = (url or "").strip()
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc or "/FeatureServer" not in url:
            raise ValueError("Please enter a valid ArcGIS Feature Server URL.")
        return url.rstrip("/")

    async def open_url(self, url: str) -> list[LayerDescriptor] | LayerRecord:
        """Open a Feature Server URL or add a single layer URL.

        A URL ending in ``/FeatureServer`` returns the server's layers for
        selection (see ``add_layers``). Anything else is taken to be
        ``{server}/{layer_id}`` and added directly.
        """
        url = self.validate_url(url)
        self.set_status("Fetching layer information...")

        if url.endswith("/FeatureServer"):
            descriptors = await self.resolver.resolve_service(url)
            self.current_server = url
            self.set_status(f"Found {len(descriptors)} layer(s) in {url}.")
            return descriptors

        service_url, layer_id = url.rsplit("/", 1)
        metadata = await self.client.get_layer(service_url, layer_id)
        return await self.add_layer(service_url, layer_id, metadata)

    async def add_layer(self, service_url: str, layer_id, metadata: dict | None = None) -> LayerRecord:
        """Fetch a layer's features and store it under ``{service_url}/{layer_id}``."""
        service_url = service_url.rstrip("/")
        if metadata is None:
            metadata = await self.client.get_layer(service_url, layer_id)

        layer_url = f"{service_url}/{layer_id}"
        features = await self.client.query_features(layer_url)

        record = LayerRecord(
            layer_url=layer_url,
            metadata=metadata,
            features=features,
            drawing_info=metadata.get("drawingInfo"),
        )
        self.store.set(record)
        logger.info(f"Added layer {record.name or layer_url} ({len(features)} features)")
        return record

    async def add_layers(self, service_url: str, layer_ids: list) -> AddReport:
        """Add several layers of one server, one at a time.

        A layer that fails is reported and skipped; layers added before it
        stay in the store.
        """
        report = AddReport()
        if not layer_ids:
            self.set_status("Please select at least one layer.", "warning")
            return report

        self.set_status(f"Adding {len(layer_ids)} layer(s)...")
        for layer_id in layer_ids:
            try:
                report.added.append(await self.add_layer(service_url, layer_id))
            except ConverterError as e:
                message = f"Error adding layer {layer_id}: {e}"
                report.errors.append(message)
                self.set_status(message, "error")

        if report.added:
            self.set_status(f"Successfully added {len(report.added)} layer(s).", "success")
        return report

    async def add_descriptor(self, descriptor: LayerDescriptor) -> LayerRecord:
        """Add a layer picked from resolver output.

        Raises:
            UnsupportedFormatError: The descriptor is neither queryable nor
                carries inline features.
        """
        if descriptor.layer_url:
            return await self.add_layer(descriptor.service_url, descriptor.id)

        if descriptor.inline_features is not None:
            record = LayerRecord(
                layer_url=f"{INLINE_SCHEME}{descriptor.id}",
                metadata={
                    "name": descriptor.name,
                    "type": descriptor.type,
                    "geometryType": descriptor.geometry_type,
                },
                features=list(descriptor.inline_features),
            )
            self.store.set(record)
            return record

        raise UnsupportedFormatError(f"Layer {descriptor.name or descriptor.id} cannot be queried")

    async def resolve_item(self, text: str) -> list[LayerDescriptor]:
        """Resolve a portal item id or item URL into layer descriptors."""
        item_id = parse_item_id(text)
        if item_id is None:
            raise ValueError("Please enter a valid ArcGIS item id or URL.")
        descriptors = await self.resolver.resolve_item(item_id)
        self.resolved = {d.key: d for d in descriptors}
        self.set_status(f"Found {len(descriptors)} layer(s) in item {item_id}.")
        return descriptors

    async def add_resolved(self, keys: list[str]) -> AddReport:
        """Add layers picked from the last ``resolve_item`` by descriptor key.

        Like ``add_layers``, a failing layer is reported and the rest still
        run.
        """
        report = AddReport()
        if not keys:
            self.set_status("Please select at least one layer.", "warning")
            return report

        self.set_status(f"Adding {len(keys)} layer(s)...")
        for key in keys:
            descriptor = self.resolved.get(key)
            if descriptor is None:
                message = f"Error adding layer {key}: not found in the resolved item"
                report.errors.append(message)
                self.set_status(message, "error")
                continue
            try:
                report.added.append(await self.add_descriptor(descriptor))
            except ConverterError as e:
                message = f"Error adding layer {descriptor.name or key}: {e}"
                report.errors.append(message)
                self.set_status(message, "error")

        if report.added:
            self.set_status(f"Successfully added {len(report.added)} layer(s).", "success")
        return report

    def remove_layer(self, layer_url: str) -> bool:
        removed = self.store.delete(layer_url)
        if removed:
            self.set_status("Layer removed successfully.")
        return removed

    # -- export -------------------------------------------------------------

    async def build(self, layer_url: str) -> FeatureCollection | None:
        """Canonical collection of a stored layer, or None without data."""
        record = self.store.get(layer_url)
        if record is None:
            raise KeyError(f"Layer not found: {layer_url}")
        if record.features is None:
            return None
        return FeatureCollection(features=await self.worker.process(record.features))

    async def export(self, formats: list[str], layer_urls: list[str] | None = None) -> ExportReport:
        """Export stored layers in every requested format.

        Each (layer, format) pair is independent: a failure is reported and
        the remaining pairs still run.
        """
        report = ExportReport()
        if not len(self.store):
            self.set_status("No layers to export.", "error")
            return report
        if not formats:
            self.set_status("Please select at least one export format.", "warning")
            return report

        self.set_status("Preparing export...")
        records = self.store.list() if layer_urls is None else [
            self.store.get(url) for url in layer_urls if url in self.store
        ]

        for record in records:
            base_filename = export_filename(record.name)
            try:
                collection = await self.build(record.layer_url)
            except Exception as e:
                message = f'Error converting layer "{record.name}": {e}'
                report.errors.append(message)
                self.set_status(message, "error")
                continue

            for key in formats:
                try:
                    fmt = get_format(key)
                    if collection is None:
                        raise ConverterError("No data to export")
                    self.set_status(f'Converting layer "{record.name}" to {key.upper()}...')
                    report.files.append(
                        ExportedFile(
                            layer_url=record.layer_url,
                            format=fmt.key,
                            filename=f"{base_filename}.{fmt.extension}",
                            media_type=fmt.media_type,
                            content=fmt.exporter(collection, base_filename),
                        )
                    )
                except UnsupportedFormatError as e:
                    report.errors.append(str(e))
                    self.set_status(str(e), "warning")
                except Exception as e:
                    message = f'Error exporting layer "{record.name}" to {key.upper()}: {e}'
                    report.errors.append(message)
                    self.set_status(message, "error")

        if report.files:
            self.set_status(f"Exported {len(report.files)} file(s) successfully.", "success")
        else:
            self.set_status("Export failed.", "error")
        return report

    # -- sharing ------------------------------------------------------------

    def share_state(self, formats: list[str] | None = None) -> ShareState:
        state = ShareState(export=formats[0] if formats else None)
        if self.current_server:
            state.url = self.current_server
        else:
            urls = [url for url in self.store.urls() if not url.startswith(INLINE_SCHEME)]
            if len(urls) == 1:
                state.url = urls[0]
            else:
                state.urls = urls
        return state

    def share_url(self, base_url: str, formats: list[str] | None = None) -> str:
        return encode_share_url(base_url, self.share_state(formats))

    async def load_shared(self, state: ShareState | str) -> ExportReport | None:
        """Replay a shared state: load its layers, then run its export.

        A Feature Server URL loads every layer of that server.
        """
        if isinstance(state, str):
            state = decode_share_params(state)

        urls = state.layer_urls
        if not urls:
            return None

        self.set_status(f"Loading {len(urls)} layer(s)...")
        for url in urls:
            try:
                opened = await self.open_url(url)
                if isinstance(opened, list):
                    await self.add_layers(self.current_server, [d.id for d in opened])
            except (ConverterError, ValueError) as e:
                self.set_status(f"Error loading layers: {e}", "error")

        if state.export and len(self.store):
            return await self.export([state.export])
        return None
