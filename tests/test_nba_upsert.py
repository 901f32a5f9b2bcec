import threading
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import CURRY, LEBRON, LEBRON_GAME_1, LEBRON_GAME_2, game_log_payload, player_index_payload
from models_normalized import Player, PlayerGameLog
from webapp.services.nba_upsert import PLAYER_FIELDS, upsert_player_game_logs, upsert_players
from webapp.services.nba_validation import normalize_player_game_logs, normalize_player_index


def _player_snapshot(session_factory, player_id):
    with session_factory() as session:
        p = session.get(Player, player_id)
        return {col: getattr(p, col) for col in PLAYER_FIELDS}


def test_empty_input_does_not_open_a_session():
    factory = MagicMock()
    assert upsert_players(factory, []) == []
    assert upsert_player_game_logs(factory, []) == []
    factory.assert_not_called()


def test_upsert_players_returns_identity_keys(session_factory):
    ids = upsert_players(session_factory, normalize_player_index(player_index_payload()))
    assert ids == [2544, 201939]

    with session_factory() as session:
        assert session.query(Player).count() == 2


def test_upsert_is_idempotent(session_factory):
    records = normalize_player_index(player_index_payload([LEBRON]))

    upsert_players(session_factory, records)
    first = _player_snapshot(session_factory, 2544)
    upsert_players(session_factory, records)

    with session_factory() as session:
        assert session.query(Player).count() == 1
    assert _player_snapshot(session_factory, 2544) == first


def test_conflict_replaces_every_field(session_factory):
    upsert_players(session_factory, normalize_player_index(player_index_payload([LEBRON])))

    traded = list(LEBRON)
    traded[4] = None        # TEAM_ID
    traded[5] = None        # TEAM_SLUG
    traded[6] = "Cleveland"
    traded[7] = "Cavaliers"
    traded[15] = 30.0       # PTS
    upsert_players(session_factory, normalize_player_index(player_index_payload([traded])))

    snap = _player_snapshot(session_factory, 2544)
    assert snap["team_id"] is None
    assert snap["team_slug"] is None
    assert snap["team_city"] == "Cleveland"
    assert snap["team_name"] == "Cavaliers"
    assert snap["points"] == 30.0


def test_duplicate_keys_in_one_batch_last_wins(session_factory):
    renamed = list(LEBRON)
    renamed[2] = "King"
    records = normalize_player_index(player_index_payload([LEBRON, CURRY, renamed]))

    ids = upsert_players(session_factory, records)

    assert ids == [2544, 201939]
    assert _player_snapshot(session_factory, 2544)["first_name"] == "King"


def test_game_logs_keyed_by_player_and_game(session_factory, seed_players):
    keys = upsert_player_game_logs(session_factory, normalize_player_game_logs(game_log_payload()))
    assert keys == [(2544, "0022500010"), (2544, "0022500025")]

    corrected = list(LEBRON_GAME_1)
    corrected[-3] = 28  # PTS stat correction
    upsert_player_game_logs(session_factory, normalize_player_game_logs(game_log_payload([corrected])))

    with session_factory() as session:
        assert session.query(PlayerGameLog).count() == 2
        log = session.query(PlayerGameLog).filter_by(game_id="0022500010").one()
        assert log.points == 28


def test_failed_batch_leaves_nothing_behind(session_factory, seed_players):
    orphan = list(LEBRON_GAME_2)
    orphan[1] = 999999  # no such player -> foreign key violation
    records = normalize_player_game_logs(game_log_payload([LEBRON_GAME_1, orphan]))

    with pytest.raises(IntegrityError):
        upsert_player_game_logs(session_factory, records)

    with session_factory() as session:
        assert session.query(PlayerGameLog).count() == 0


def test_concurrent_writer_of_same_new_key_last_commit_wins(session_factory):
    renamed = list(LEBRON)
    renamed[2] = "King"
    errors = []

    def writer():
        try:
            upsert_players(session_factory, normalize_player_index(player_index_payload([renamed])))
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    with session_factory() as first:
        # first writer has inserted the row but not committed yet
        first.add(Player(id=2544, first_name="LeBron", last_name="James", slug="lebron-james"))
        first.flush()

        thread = threading.Thread(target=writer)
        thread.start()
        thread.join(0.3)
        first.commit()

    thread.join(10)

    assert not thread.is_alive()
    assert errors == []
    with session_factory() as session:
        assert session.query(Player).count() == 1
    assert _player_snapshot(session_factory, 2544)["first_name"] == "King"


def test_game_log_upsert_over_committed_row_from_other_writer(session_factory, seed_players):
    with session_factory() as other, other.begin():
        other.add(
            PlayerGameLog(
                player_id=2544,
                game_id="0022500010",
                season_id="22025",
                game_date="OCT 22, 2025",
                matchup="LAL vs. GSW",
                points=1,
            )
        )

    keys = upsert_player_game_logs(session_factory, normalize_player_game_logs(game_log_payload()))

    assert keys == [(2544, "0022500010"), (2544, "0022500025")]
    with session_factory() as session:
        assert session.query(PlayerGameLog).count() == 2
        log = session.query(PlayerGameLog).filter_by(game_id="0022500010").one()
        assert log.points == 26
        assert log.result == "W"
