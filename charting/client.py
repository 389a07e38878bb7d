"""
HTTP client for the charting service.

Runs the browser flow from Python: upload a file, fetch the stored copy
back, parse it into a local ChartSession and draw the first chart.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from charting.dataset_store import declared_mimetype
from charting.errors import TransportError
from charting.models import ChartType, StoredFile
from charting.session import ActiveChart, ChartSession

logger = logging.getLogger(__name__)


class ChartClient:

    def __init__(self, base_url: str = "http://localhost:3000",
                 session: Optional[ChartSession] = None,
                 http: Optional[httpx.Client] = None):
        self.http = http or httpx.Client(base_url=base_url)
        self.session = session or ChartSession()

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {url} failed: HTTP {e.response.status_code}")
            raise TransportError(
                f"HTTP error! status: {e.response.status_code}",
                status=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(f"Request failed: {e}") from e
        return response

    def upload(self, path: Union[str, Path]) -> StoredFile:
        path = Path(path)
        mimetype = declared_mimetype(None, path.name)
        with path.open("rb") as fh:
            response = self._request(
                "POST", "/upload", files={"dataFile": (path.name, fh, mimetype)}
            )
        result = response.json()
        logger.info(f"File uploaded successfully: {result}")
        return StoredFile(
            filename=result["filename"],
            originalname=result["originalname"],
            mimetype=result["mimetype"],
        )

    def fetch(self, filename: str) -> str:
        return self._request("GET", f"/uploads/{filename}").text

    def upload_and_render(self, path: Union[str, Path],
                          chart_type: ChartType = ChartType.BAR) -> Optional[ActiveChart]:
        """Upload ``path`` and draw it into the local session."""
        stored = self.upload(path)
        content = self.fetch(stored.filename)
        return self.session.ingest(content, stored.mimetype, chart_type)
