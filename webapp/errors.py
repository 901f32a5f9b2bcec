# webapp/errors.py

from __future__ import annotations

from typing import Optional


class StatsError(Exception):
    """Base class for failures while pulling data from stats.nba.com."""


class UpstreamError(StatsError):
    """
    Upstream answered with a non-2xx status, timed out, or could not be reached.
    ``status`` is None when no response was received.
    """

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


class MalformedPayloadError(StatsError):
    """Response body is not JSON or lacks the ``resultSets`` envelope."""
