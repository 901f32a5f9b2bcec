# webapp/services/nba_client.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from webapp.errors import MalformedPayloadError, UpstreamError
from webapp.logging_utils import log_json

logger = logging.getLogger(__name__)

# stats.nba.com rejects requests that don't look like they come from nba.com
NBA_STATS_HEADERS: Dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.nba.com/",
    "Origin": "https://www.nba.com",
    "Connection": "keep-alive",
}


class NbaStatsClient:
    """
    Thin GET wrapper around stats.nba.com.

    No retries: a non-2xx answer, a timeout or a connection error raises
    UpstreamError and the caller decides what to do.
    """

    def __init__(
        self,
        base_url: str = "https://stats.nba.com/stats",
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(NBA_STATS_HEADERS)

    def close(self) -> None:
        self._session.close()

    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        params = params or {}

        log_json(logger, "http_request_start", url=url, params=params)
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            log_json(logger, "http_error", level=logging.WARNING, url=url, error=str(exc))
            raise UpstreamError(f"Failed to reach {endpoint}: {exc}", url=url) from exc

        if not resp.ok:
            log_json(logger, "http_status_error", level=logging.WARNING, url=url, status=resp.status_code)
            raise UpstreamError(
                f"Failed to fetch {endpoint}: {resp.status_code}",
                status=resp.status_code,
                url=url,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedPayloadError(f"{endpoint} returned a non-JSON body") from exc
