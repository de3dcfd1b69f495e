"""Shareable session state as URL query parameters.

``url``     a Feature Server URL or a single layer URL
``urls``    several layer URLs, comma-joined
``export``  the export format to run once the layers are loaded
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlencode, urlsplit


@dataclass
class ShareState:
    url: str | None = None
    urls: list[str] = field(default_factory=list)
    export: str | None = None

    @property
    def layer_urls(self) -> list[str]:
        """Every URL to load, in order."""
        if self.url:
            return [self.url]
        return list(self.urls)


def encode_share_url(base_url: str, state: ShareState) -> str:
    """Append the state to ``base_url`` (any existing query is replaced)."""
    params = []
    if state.url:
        params.append(("url", state.url))
    elif state.urls:
        params.append(("urls", ",".join(state.urls)))
    if state.export:
        params.append(("export", state.export))

    base = base_url.split("?", 1)[0]
    return f"{base}?{urlencode(params)}"


def decode_share_params(query: str) -> ShareState:
    """Read a ShareState back from a query string or a full URL."""
    if "?" in query or urlsplit(query).scheme in ("http", "https"):
        query = urlsplit(query).query
    params = parse_qs(query.lstrip("?"))

    url = params.get("url", [None])[0]
    urls_value = params.get("urls", [""])[0]
    urls = [u.strip() for u in urls_value.split(",") if u.strip()]
    export = params.get("export", [None])[0]
    return ShareState(url=url, urls=urls, export=export.lower() if export else None)
