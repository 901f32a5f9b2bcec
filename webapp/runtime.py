# webapp/runtime.py
"""
Process-wide objects (engine, session factory, cache, upstream client),
built once at startup and passed down explicitly.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from flask import current_app
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from db import init_db, make_engine, make_session_factory
from webapp.services.nba_client import NbaStatsClient
from webapp.services.nba_ingest import StatsIngestor, player_game_log_spec, player_index_spec
from webapp.services.web_cache import WebCacheStore

EXTENSION_KEY = "skill_issue"


@dataclass
class Runtime:
    engine: Engine
    session_factory: sessionmaker
    cache: WebCacheStore
    client: NbaStatsClient
    ingestor: StatsIngestor
    season: str
    season_type: str

    def close(self) -> None:
        self.client.close()
        self.engine.dispose()


def build_runtime(
    config: Mapping[str, Any],
    client: Optional[NbaStatsClient] = None,
    clock: Callable[[], float] = time.time,
) -> Runtime:
    engine = make_engine(config["DATABASE_URL"])
    init_db(engine)
    session_factory = make_session_factory(engine)

    cache = WebCacheStore(session_factory, clock=clock)
    client = client or NbaStatsClient(
        base_url=config["NBA_API_BASE_URL"],
        timeout_seconds=config["NBA_API_TIMEOUT_SECONDS"],
    )
    ingestor = StatsIngestor(
        cache=cache,
        client=client,
        session_factory=session_factory,
        player_index=player_index_spec(
            ttl_seconds=config["PLAYER_INDEX_TTL_SECONDS"],
            stale_after_seconds=config["PLAYER_INDEX_STALE_AFTER_SECONDS"],
        ),
        player_game_log=player_game_log_spec(
            ttl_seconds=config["GAME_LOG_TTL_SECONDS"],
            stale_after_seconds=config["GAME_LOG_STALE_AFTER_SECONDS"],
        ),
    )

    return Runtime(
        engine=engine,
        session_factory=session_factory,
        cache=cache,
        client=client,
        ingestor=ingestor,
        season=config["NBA_SEASON"],
        season_type=config["NBA_SEASON_TYPE"],
    )


def config_to_dict(config_obj) -> dict:
    return {k: getattr(config_obj, k) for k in dir(config_obj) if k.isupper()}


def current_runtime() -> Runtime:
    return current_app.extensions[EXTENSION_KEY]
