from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from db import init_db, make_engine, make_session_factory
from webapp import create_app
from webapp.config import Config
from webapp.runtime import build_runtime, config_to_dict
from webapp.services.nba_ingest import StatsIngestor, player_game_log_spec, player_index_spec
from webapp.services.web_cache import WebCacheStore

SEASON = "2025-26"
SEASON_TYPE = "Regular Season"

PLAYER_INDEX_HEADERS = [
    "PERSON_ID", "PLAYER_LAST_NAME", "PLAYER_FIRST_NAME", "PLAYER_SLUG",
    "TEAM_ID", "TEAM_SLUG", "TEAM_CITY", "TEAM_NAME", "POSITION",
    "JERSEY_NUMBER", "ROSTER_STATUS", "HEIGHT", "WEIGHT", "FROM_YEAR",
    "TO_YEAR", "PTS", "REB", "AST", "STATS_TIMEFRAME",
]

LEBRON = [2544, "James", "LeBron", "lebron-james", 1610612747, "lakers", "Los Angeles",
          "Lakers", "F", "23", 1, "6-9", "250", "2003", "2025", 24.4, 7.8, 8.2, "Season"]
CURRY = [201939, "Curry", "Stephen", "stephen-curry", 1610612744, "warriors", "Golden State",
         "Warriors", "G", "30", 1, "6-2", "185", "2009", "2025", 26.1, 4.4, 6.0, "Season"]

GAME_LOG_HEADERS = [
    "SEASON_ID", "PLAYER_ID", "GAME_ID", "GAME_DATE", "MATCHUP", "WL", "MIN",
    "FGM", "FGA", "FG_PCT", "FG3M", "FG3A", "FG3_PCT", "FTM", "FTA", "FT_PCT",
    "OREB", "DREB", "REB", "AST", "STL", "BLK", "TOV", "PF", "PTS",
    "PLUS_MINUS", "VIDEO_AVAILABLE",
]

LEBRON_GAME_1 = ["22025", 2544, "0022500010", "OCT 22, 2025", "LAL vs. GSW", "W", 35,
                 10, 20, 0.5, 2, 6, 0.333, 4, 5, 0.8, 1, 7, 8, 9, 1, 0, 3, 2, 26, 12, 1]
LEBRON_GAME_2 = ["22025", 2544, "0022500025", "OCT 24, 2025", "LAL @ PHX", "L", 33,
                 8, 19, 0.421, 1, 5, 0.2, 6, 6, 1.0, 0, 5, 5, 7, 2, 1, 4, 1, 23, -5, 1]


def result_sets(name: str, headers: List[str], rows: List[List[Any]]) -> Dict[str, Any]:
    return {
        "resource": name.lower(),
        "resultSets": [{"name": name, "headers": list(headers), "rowSet": copy.deepcopy(rows)}],
    }


def player_index_payload(rows: Optional[List[List[Any]]] = None) -> Dict[str, Any]:
    return result_sets("PlayerIndex", PLAYER_INDEX_HEADERS, rows if rows is not None else [LEBRON, CURRY])


def game_log_payload(rows: Optional[List[List[Any]]] = None) -> Dict[str, Any]:
    return result_sets(
        "PlayerGameLog", GAME_LOG_HEADERS, rows if rows is not None else [LEBRON_GAME_1, LEBRON_GAME_2]
    )


class FakeClock:
    def __init__(self, now: float = 1_760_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNbaClient:
    """
    Stands in for NbaStatsClient. ``responses[endpoint]`` may be a body, an
    exception instance (raised), or a callable taking params.
    """

    def __init__(self) -> None:
        self.responses: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        params = dict(params or {})
        self.calls.append((endpoint, params))
        resp = self.responses[endpoint]
        if isinstance(resp, Exception):
            raise resp
        if callable(resp):
            return resp(params)
        return copy.deepcopy(resp)

    def calls_to(self, endpoint: str) -> int:
        return sum(1 for ep, _ in self.calls if ep == endpoint)

    def close(self) -> None:
        pass


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def cache(session_factory, clock) -> WebCacheStore:
    return WebCacheStore(session_factory, clock=clock)


@pytest.fixture()
def fake_client() -> FakeNbaClient:
    client = FakeNbaClient()
    client.responses["playerindex"] = player_index_payload()
    client.responses["playergamelog"] = game_log_payload()
    return client


@pytest.fixture()
def ingestor(cache, fake_client, session_factory) -> StatsIngestor:
    return StatsIngestor(
        cache=cache,
        client=fake_client,
        session_factory=session_factory,
        player_index=player_index_spec(ttl_seconds=21600),
        player_game_log=player_game_log_spec(ttl_seconds=900, stale_after_seconds=3600),
    )


@pytest.fixture()
def app(tmp_path, fake_client, clock):
    overrides = {
        "TESTING": True,
        "DATABASE_URL": f"sqlite:///{tmp_path / 'app.db'}",
        "NBA_SEASON": SEASON,
        "NBA_SEASON_TYPE": SEASON_TYPE,
        "LOG_LEVEL": "WARNING",
    }
    config = config_to_dict(Config)
    config.update(overrides)

    runtime = build_runtime(config, client=fake_client, clock=clock)
    app = create_app(overrides, runtime=runtime)
    yield app
    runtime.close()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def seed_players(session_factory):
    """Persist LeBron and Curry through the real upsert path."""
    from webapp.services.nba_upsert import upsert_players
    from webapp.services.nba_validation import normalize_player_index

    return upsert_players(session_factory, normalize_player_index(player_index_payload()))
