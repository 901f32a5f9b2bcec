# webapp/services/nba_ingest.py
"""
stats.nba.com ingestion pipeline.

Public entrypoints live on ``StatsIngestor``:

    fetch_entity(spec, params, persist_to_db=False, allow_stale=False)
    fetch_player_index(season, persist_to_db=True)
    fetch_player_game_logs(player_id, season, season_type, persist_to_db=True)

For one entity type (an ``EntitySpec``) it:
- Looks the params up in the web cache.
- Serves a fresh hit without touching upstream (optionally backfilling the
  entity tables from it, for caches filled by an earlier non-persisting call).
- Otherwise calls upstream, normalizes, rewrites the cache entry and upserts.

It **does not**:
- Retry, back off, or fall back to stale data when upstream fails.
- Deduplicate concurrent misses on the same key; both callers fetch and the
  last cache write wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type
from urllib.parse import quote

from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from webapp.logging_utils import log_json
from webapp.services.nba_client import NbaStatsClient
from webapp.services.nba_upsert import upsert_player_game_logs, upsert_players
from webapp.services.nba_validation import (
    PLAYER_GAME_LOG_RESULT_SET,
    PLAYER_INDEX_RESULT_SET,
    PlayerGameLogRow,
    PlayerIndexRow,
    normalize,
)
from webapp.services.web_cache import WebCacheStore

logger = logging.getLogger(__name__)

LEAGUE_ID_NBA = "00"

# bump when the cached record shape changes so old payloads are refetched
PLAYER_INDEX_CACHE_VERSION = "v2"
PLAYER_GAME_LOG_CACHE_VERSION = "v1"


@dataclass(frozen=True)
class EntitySpec:
    name: str
    endpoint: str
    result_set: str
    row_model: Type[Any]
    cache_key: Callable[[Mapping[str, Any]], str]
    upstream_params: Callable[[Mapping[str, Any]], Dict[str, Any]]
    ttl_seconds: int
    upsert: Callable[[sessionmaker, Sequence[Any]], List[Any]]
    stale_after_seconds: Optional[int] = None


def build_cache_key(prefix: str, *parts: Any, version: str) -> str:
    """
    ``prefix:part1:part2:...:version``; parts are percent-encoded so a value
    containing ':' cannot shift the other fields.
    """
    encoded = [quote(str(p), safe="-_.") for p in parts]
    return ":".join([prefix, *encoded, version])


def player_index_spec(ttl_seconds: int, stale_after_seconds: Optional[int] = None) -> EntitySpec:
    return EntitySpec(
        name="player_index",
        endpoint="playerindex",
        result_set=PLAYER_INDEX_RESULT_SET,
        row_model=PlayerIndexRow,
        cache_key=lambda p: build_cache_key(
            "playerindex", p["season"], version=PLAYER_INDEX_CACHE_VERSION
        ),
        upstream_params=lambda p: {"LeagueID": LEAGUE_ID_NBA, "Season": p["season"]},
        ttl_seconds=ttl_seconds,
        stale_after_seconds=stale_after_seconds,
        upsert=upsert_players,
    )


def player_game_log_spec(ttl_seconds: int, stale_after_seconds: Optional[int] = None) -> EntitySpec:
    return EntitySpec(
        name="player_game_log",
        endpoint="playergamelog",
        result_set=PLAYER_GAME_LOG_RESULT_SET,
        row_model=PlayerGameLogRow,
        cache_key=lambda p: build_cache_key(
            "playergamelog",
            int(p["player_id"]),
            p["season"],
            p["season_type"],
            version=PLAYER_GAME_LOG_CACHE_VERSION,
        ),
        upstream_params=lambda p: {
            "LeagueID": LEAGUE_ID_NBA,
            "PlayerID": int(p["player_id"]),
            "Season": p["season"],
            "SeasonType": p["season_type"],
        },
        ttl_seconds=ttl_seconds,
        stale_after_seconds=stale_after_seconds,
        upsert=upsert_player_game_logs,
    )


class StatsIngestor:
    def __init__(
        self,
        cache: WebCacheStore,
        client: NbaStatsClient,
        session_factory: sessionmaker,
        player_index: Optional[EntitySpec] = None,
        player_game_log: Optional[EntitySpec] = None,
    ) -> None:
        self.cache = cache
        self.client = client
        self.session_factory = session_factory
        self.player_index = player_index or player_index_spec(ttl_seconds=60 * 60 * 6)
        self.player_game_log = player_game_log or player_game_log_spec(
            ttl_seconds=900, stale_after_seconds=3600
        )

    def fetch_entity(
        self,
        spec: EntitySpec,
        params: Mapping[str, Any],
        persist_to_db: bool = False,
        allow_stale: bool = False,
    ) -> List[Any]:
        """
        Return normalized records for ``params``, from cache when it is fresh
        (or stale and ``allow_stale``), from upstream otherwise.

        Upstream and payload errors propagate to the caller.
        """
        key = spec.cache_key(params)

        cached = self.cache.get(key)
        if cached is not None and (not cached.is_stale or allow_stale):
            records = self._hydrate(spec, key, cached.payload)
            if records is not None:
                log_json(logger, "cache_hit", entity=spec.name, key=key, stale=cached.is_stale)
                if persist_to_db:
                    spec.upsert(self.session_factory, records)
                return records

        log_json(
            logger,
            "cache_stale" if cached is not None and cached.is_stale else "cache_miss",
            entity=spec.name,
            key=key,
        )

        raw = self.client.get_json(spec.endpoint, spec.upstream_params(params))
        result = normalize(raw, spec.result_set, spec.row_model)
        if result.dropped:
            log_json(
                logger,
                "rows_dropped",
                level=logging.WARNING,
                entity=spec.name,
                key=key,
                dropped=result.dropped,
                kept=len(result.records),
            )

        self.cache.set(
            key,
            [rec.model_dump(mode="json") for rec in result.records],
            ttl_seconds=spec.ttl_seconds,
            stale_after_seconds=spec.stale_after_seconds,
        )

        if persist_to_db:
            spec.upsert(self.session_factory, result.records)

        return result.records

    def _hydrate(self, spec: EntitySpec, key: str, payload: Any) -> Optional[List[Any]]:
        # a payload that no longer fits the row model is treated like a miss
        if not isinstance(payload, list):
            log_json(logger, "cache_payload_invalid", level=logging.WARNING, entity=spec.name, key=key)
            return None
        try:
            return [spec.row_model.model_validate(item) for item in payload]
        except ValidationError:
            log_json(logger, "cache_payload_invalid", level=logging.WARNING, entity=spec.name, key=key)
            return None

    # ---------- Entity shortcuts ----------

    def fetch_player_index(
        self,
        season: str,
        persist_to_db: bool = True,
        allow_stale: bool = False,
    ) -> List[PlayerIndexRow]:
        return self.fetch_entity(
            self.player_index,
            {"season": season},
            persist_to_db=persist_to_db,
            allow_stale=allow_stale,
        )

    def fetch_player_game_logs(
        self,
        player_id: int,
        season: str,
        season_type: str = "Regular Season",
        persist_to_db: bool = True,
        allow_stale: bool = False,
    ) -> List[PlayerGameLogRow]:
        return self.fetch_entity(
            self.player_game_log,
            {"player_id": player_id, "season": season, "season_type": season_type},
            persist_to_db=persist_to_db,
            allow_stale=allow_stale,
        )
