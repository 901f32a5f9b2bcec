# webapp/services/nba_upsert.py
"""
Write normalized stats.nba.com rows into the entity tables.

Each batch runs in one transaction as a single ``INSERT ... ON CONFLICT DO
UPDATE`` keyed by the row's identity. On conflict *every* tracked column is
overwritten with the incoming value (None included), so a row always mirrors
the latest fetch. Concurrent writers of the same key never collide: whichever
transaction commits last wins.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from models_normalized import Player, PlayerGameLog
from webapp.logging_utils import log_json
from webapp.services.nba_validation import PlayerGameLogRow, PlayerIndexRow

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

# Columns copied verbatim from the row models (attribute name == column name)
PLAYER_FIELDS: Tuple[str, ...] = (
    "first_name",
    "last_name",
    "slug",
    "team_id",
    "team_slug",
    "team_city",
    "team_name",
    "position",
    "jersey_number",
    "roster_status",
    "height",
    "weight",
    "from_year",
    "to_year",
    "points",
    "rebounds",
    "assists",
    "stats_timeframe",
)

GAME_LOG_FIELDS: Tuple[str, ...] = (
    "season_id",
    "game_date",
    "matchup",
    "result",
    "minutes",
    "fgm",
    "fga",
    "fg3m",
    "fg3a",
    "ftm",
    "fta",
    "o_reb",
    "d_reb",
    "rebounds",
    "assists",
    "steals",
    "blocks",
    "turnovers",
    "personal_fouls",
    "points",
    "plus_minus",
    "fg_pct",
    "ft_pct",
    "three_pt_pct",
    "video_available",
)


def upsert_players(session_factory: sessionmaker, records: Sequence[PlayerIndexRow]) -> List[int]:
    """
    Insert or fully replace Player rows keyed by PERSON_ID.
    Returns the affected player ids in input order (deduplicated).
    """
    if not records:
        return []

    rows: Dict[int, Dict[str, Any]] = {}
    for rec in records:
        row = {col: getattr(rec, col) for col in PLAYER_FIELDS}
        row["id"] = rec.person_id
        rows[rec.person_id] = row

    with session_factory() as session, session.begin():
        _execute_upsert(session, Player.__table__, ["id"], PLAYER_FIELDS, list(rows.values()))

    log_json(logger, "players_upserted", count=len(rows))
    return list(rows)


def upsert_player_game_logs(
    session_factory: sessionmaker,
    records: Sequence[PlayerGameLogRow],
) -> List[Tuple[int, str]]:
    """
    Insert or fully replace PlayerGameLog rows keyed by (player_id, game_id).
    The referenced players must already exist.
    """
    if not records:
        return []

    rows: Dict[Tuple[int, str], Dict[str, Any]] = {}
    for rec in records:
        row = {col: getattr(rec, col) for col in GAME_LOG_FIELDS}
        row["player_id"] = rec.player_id
        row["game_id"] = rec.game_id
        rows[(rec.player_id, rec.game_id)] = row

    with session_factory() as session, session.begin():
        _execute_upsert(
            session,
            PlayerGameLog.__table__,
            ["player_id", "game_id"],
            GAME_LOG_FIELDS,
            list(rows.values()),
        )

    log_json(logger, "game_logs_upserted", count=len(rows))
    return list(rows)


def _execute_upsert(
    session: Session,
    table: Table,
    key_columns: List[str],
    fields: Sequence[str],
    rows: List[Dict[str, Any]],
) -> None:
    # INSERT ... ON CONFLICT(key) DO UPDATE SET every tracked column = excluded.column
    dialect = session.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"upsert is not supported on {dialect!r}")

    stmt = insert(table)
    update_cols = {col: stmt.excluded[col] for col in fields}
    if "updated_at" in table.c:
        update_cols["updated_at"] = stmt.excluded["updated_at"]

    stmt = stmt.on_conflict_do_update(index_elements=key_columns, set_=update_cols)
    session.execute(stmt, rows)
