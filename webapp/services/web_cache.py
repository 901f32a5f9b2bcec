# webapp/services/web_cache.py
"""
Stale-while-revalidate cache backed by the ``web_cache`` table.

Each entry has two windows measured from ``fetched_at``:

- fresh:   now < fetched_at + ttl_seconds
- servable: now < fetched_at + max(ttl_seconds, stale_after_seconds or ttl_seconds)

Between the two the entry is returned with ``is_stale=True`` and the caller
decides whether to refetch. Past the servable window it is a miss.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from db import WebCache
from webapp.logging_utils import log_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    status: int
    fetched_at: int
    ttl_seconds: int
    stale_after_seconds: Optional[int]
    is_stale: bool

    @property
    def expires_at(self) -> int:
        return self.fetched_at + _servable_window(self.ttl_seconds, self.stale_after_seconds)


def _servable_window(ttl_seconds: int, stale_after_seconds: Optional[int]) -> int:
    if stale_after_seconds is None:
        return ttl_seconds
    return max(ttl_seconds, stale_after_seconds)


class WebCacheStore:
    """
    Key -> payload store. Payloads are stored as JSON text and are opaque here.

    One instance per process, built next to the engine and handed to whoever
    needs it.
    """

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], float] = time.time):
        self._session_factory = session_factory
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def get(self, key: str) -> Optional[CacheEntry]:
        now = self._now()
        with self._session_factory() as session:
            row = session.get(WebCache, key)
            if row is None:
                return None

            window = _servable_window(row.ttl_seconds, row.stale_after_seconds)
            if now >= row.fetched_at + window:
                return None

            try:
                payload = json.loads(row.payload)
            except (TypeError, ValueError):
                # corrupt payload is a miss; the next set() overwrites it
                log_json(logger, "cache_corrupt_payload", level=logging.WARNING, key=key)
                return None

            return CacheEntry(
                key=row.key,
                payload=payload,
                status=row.status if row.status is not None else 200,
                fetched_at=row.fetched_at,
                ttl_seconds=row.ttl_seconds,
                stale_after_seconds=row.stale_after_seconds,
                is_stale=now >= row.fetched_at + row.ttl_seconds,
            )

    def set(
        self,
        key: str,
        payload: Any,
        ttl_seconds: int,
        stale_after_seconds: Optional[int] = None,
        status: int = 200,
    ) -> None:
        """
        Insert or fully replace the entry for ``key``, stamping fetched_at = now.
        Last writer wins.
        """
        values = {
            "payload": json.dumps(payload, default=str),
            "status": int(status),
            "fetched_at": self._now(),
            "ttl_seconds": int(ttl_seconds),
            "stale_after_seconds": int(stale_after_seconds) if stale_after_seconds is not None else None,
        }

        try:
            self._write(key, values)
        except IntegrityError:
            # another writer inserted the same key between our lookup and insert
            self._write(key, values)

    def _write(self, key: str, values: dict) -> None:
        with self._session_factory() as session, session.begin():
            row = session.get(WebCache, key)
            if row is None:
                session.add(WebCache(key=key, **values))
            else:
                for attr, value in values.items():
                    setattr(row, attr, value)

    def delete(self, key: str) -> bool:
        with self._session_factory() as session, session.begin():
            result = session.execute(
                delete(WebCache)
                .where(WebCache.key == key)
                .execution_options(synchronize_session=False)
            )
            return bool(result.rowcount)

    def prune(self) -> int:
        """
        Delete entries whose TTL window has elapsed, grace window or not.
        Returns the number of rows removed.
        """
        now = self._now()
        with self._session_factory() as session, session.begin():
            result = session.execute(
                delete(WebCache)
                .where(WebCache.fetched_at + WebCache.ttl_seconds <= now)
                .execution_options(synchronize_session=False)
            )
            removed = result.rowcount or 0

        log_json(logger, "cache_pruned", removed=removed)
        return removed
