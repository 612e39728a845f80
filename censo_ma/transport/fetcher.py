from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path

import requests

from censo_ma.errors import NotFoundError

"""Transport primitive: fetch a path or URL into memory.

``http://`` and ``https://`` sources go through a requests Session; anything
else is read from the local filesystem. A non-success status (or a missing
file) raises NotFoundError carrying the path and status. No retries; the
timeout is the only bound enforced here.
"""

__all__ = [
    "DEFAULT_TIMEOUT",
    "FetchResponse",
    "Fetcher",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

mimetypes.add_type("application/geo+json", ".geojson")
mimetypes.add_type("application/geopackage+sqlite3", ".gpkg")


@dataclass(frozen=True)
class FetchResponse:
    path: str
    status: int
    content: bytes
    content_type: str | None  # media type without parameters, lower case

    @property
    def is_json(self) -> bool:
        return self.content_type in ("application/json", "application/geo+json")


def _media_type(header: str | None) -> str | None:
    if not header:
        return None
    return header.split(";", 1)[0].strip().lower() or None


class Fetcher:
    """Fetch-by-path returning bytes and the content type."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def fetch(self, path: str) -> FetchResponse:
        if path.startswith(("http://", "https://")):
            return self._fetch_url(path)
        return self._fetch_file(path)

    def _fetch_url(self, url: str) -> FetchResponse:
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotFoundError(url, status=None, message=f"request failed: {e}") from e
        if not response.ok:
            raise NotFoundError(url, status=response.status_code)
        return FetchResponse(
            path=url,
            status=response.status_code,
            content=response.content,
            content_type=_media_type(response.headers.get("Content-Type")),
        )

    def _fetch_file(self, path: str) -> FetchResponse:
        p = Path(path)
        if not p.is_file():
            raise NotFoundError(path, status=404)
        try:
            content = p.read_bytes()
        except OSError as e:
            raise NotFoundError(path, status=None, message=f"cannot read file: {e}") from e
        content_type, _ = mimetypes.guess_type(p.name)
        return FetchResponse(path=path, status=200, content=content, content_type=content_type)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
