import pytest

from conftest import SEASON, SEASON_TYPE, game_log_payload
from db import WebCache
from models_normalized import Player, PlayerGameLog
from webapp.errors import MalformedPayloadError, UpstreamError
from webapp.services.nba_ingest import build_cache_key


def _player_count(session_factory):
    with session_factory() as session:
        return session.query(Player).count()


def test_cold_cache_round_trip(ingestor, fake_client, cache):
    rows = ingestor.fetch_player_index(SEASON, persist_to_db=False)

    assert [r.person_id for r in rows] == [2544, 201939]
    assert fake_client.calls == [("playerindex", {"LeagueID": "00", "Season": SEASON})]

    entry = cache.get(ingestor.player_index.cache_key({"season": SEASON}))
    assert entry is not None
    assert entry.ttl_seconds == 21600
    assert len(entry.payload) == 2

    again = ingestor.fetch_player_index(SEASON, persist_to_db=False)
    assert fake_client.calls_to("playerindex") == 1
    assert again == rows


def test_cache_is_written_even_without_persisting(ingestor, session_factory):
    ingestor.fetch_player_index(SEASON, persist_to_db=False)

    assert _player_count(session_factory) == 0
    with session_factory() as session:
        assert session.query(WebCache).count() == 1


def test_fresh_hit_backfills_db_without_upstream_call(ingestor, fake_client, session_factory):
    ingestor.fetch_player_index(SEASON, persist_to_db=False)
    assert _player_count(session_factory) == 0

    ingestor.fetch_player_index(SEASON, persist_to_db=True)

    assert fake_client.calls_to("playerindex") == 1
    assert _player_count(session_factory) == 2


def test_stale_entry_is_refetched(ingestor, fake_client, clock):
    ingestor.fetch_player_index(SEASON, persist_to_db=True)
    ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)

    clock.advance(1000)  # past ttl (900), inside grace (3600)
    ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)

    assert fake_client.calls_to("playergamelog") == 2


def test_stale_entry_served_when_caller_allows(ingestor, fake_client, clock):
    ingestor.fetch_player_index(SEASON, persist_to_db=True)
    first = ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)

    clock.advance(1000)
    again = ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE, allow_stale=True)

    assert fake_client.calls_to("playergamelog") == 1
    assert again == first


def test_game_logs_persisted(ingestor, session_factory):
    ingestor.fetch_player_index(SEASON, persist_to_db=True)
    logs = ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)

    assert len(logs) == 2
    with session_factory() as session:
        assert session.query(PlayerGameLog).filter_by(player_id=2544).count() == 2


def test_upstream_failure_propagates_and_cache_is_untouched(ingestor, fake_client, cache):
    fake_client.responses["playerindex"] = UpstreamError("Failed to fetch playerindex: 500", status=500)

    with pytest.raises(UpstreamError) as exc_info:
        ingestor.fetch_player_index(SEASON)

    assert exc_info.value.status == 500
    assert cache.get(ingestor.player_index.cache_key({"season": SEASON})) is None


def test_no_fallback_to_stale_entry_on_failure(ingestor, fake_client, clock):
    ingestor.fetch_player_index(SEASON, persist_to_db=True)
    ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)

    clock.advance(1000)
    fake_client.responses["playergamelog"] = UpstreamError("down", status=503)

    with pytest.raises(UpstreamError):
        ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)


def test_malformed_payload_is_a_hard_error(ingestor, fake_client, cache):
    fake_client.responses["playerindex"] = {"message": "rate limited"}

    with pytest.raises(MalformedPayloadError):
        ingestor.fetch_player_index(SEASON)

    assert cache.get(ingestor.player_index.cache_key({"season": SEASON})) is None


def test_unusable_cached_payload_triggers_refetch(ingestor, fake_client, cache):
    key = ingestor.player_index.cache_key({"season": SEASON})
    cache.set(key, [{"unexpected": "shape"}], ttl_seconds=21600)

    rows = ingestor.fetch_player_index(SEASON, persist_to_db=False)

    assert fake_client.calls_to("playerindex") == 1
    assert len(rows) == 2
    assert cache.get(key).payload[0]["person_id"] == 2544


def test_dropped_rows_are_not_cached(ingestor, fake_client, cache):
    bad = ["22025", "not-a-player", "0022500099", "OCT 30, 2025", "LAL vs. DAL", "W"]
    fake_client.responses["playergamelog"] = game_log_payload([bad])
    ingestor.fetch_player_index(SEASON, persist_to_db=True)

    logs = ingestor.fetch_player_game_logs(2544, SEASON, SEASON_TYPE)

    assert logs == []
    key = ingestor.player_game_log.cache_key(
        {"player_id": 2544, "season": SEASON, "season_type": SEASON_TYPE}
    )
    assert cache.get(key).payload == []


def test_cache_keys_encode_every_parameter(ingestor):
    spec = ingestor.player_game_log
    base = {"player_id": 2544, "season": SEASON, "season_type": SEASON_TYPE}
    variants = [
        base,
        {**base, "player_id": 201939},
        {**base, "season": "2024-25"},
        {**base, "season_type": "Playoffs"},
    ]
    keys = {spec.cache_key(v) for v in variants}
    assert len(keys) == len(variants)

    assert ingestor.player_index.cache_key({"season": SEASON}) != ingestor.player_index.cache_key(
        {"season": "2024-25"}
    )


def test_build_cache_key_escapes_separator():
    assert build_cache_key("p", "a:b", "c", version="v1") != build_cache_key("p", "a", "b:c", version="v1")
    assert build_cache_key("player", 101, "2025-26", version="v1") == "player:101:2025-26:v1"
