"""LayerStore — registry of added layers.

One LayerRecord per distinct layer URL. Records are created when a layer is
added and dropped when the user removes it; nothing is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class LayerRecord:
    """A fetched layer held by the session.

    Attributes:
        layer_url: ``{service_url}/{layer_id}``, the unique key.
        metadata: Layer metadata document (name, type, geometryType, ...).
        features: Raw ArcGIS features from the query response.
        drawing_info: The layer's ``drawingInfo`` (renderer), if any.
        added_at: ISO8601 timestamp of when the layer was added.
    """

    layer_url: str
    metadata: dict
    features: list[dict]
    drawing_info: dict | None = None
    added_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def name(self) -> str:
        return self.metadata.get("name") or ""


class LayerStore:
    """In-memory repository of LayerRecords keyed by layer URL."""

    def __init__(self) -> None:
        self._records: dict[str, LayerRecord] = {}

    def set(self, record: LayerRecord) -> str:
        """Store a record, replacing any record with the same URL.

        Returns:
            The layer_url of the stored record.
        """
        self._records[record.layer_url] = record
        return record.layer_url

    def get(self, layer_url: str) -> LayerRecord | None:
        return self._records.get(layer_url)

    def delete(self, layer_url: str) -> bool:
        """Remove a record.

        Returns:
            True if the record was removed, False if it didn't exist.
        """
        if layer_url in self._records:
            del self._records[layer_url]
            return True
        return False

    def list(self) -> list[LayerRecord]:
        """All records, in the order they were first added."""
        return list(self._records.values())

    def urls(self) -> list[str]:
        return list(self._records)

    def __contains__(self, layer_url: object) -> bool:
        return layer_url in self._records

    def __len__(self) -> int:
        return len(self._records)
