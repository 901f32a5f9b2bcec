# webapp/services/player_queries.py
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from models_normalized import Player, PlayerGameLog


def _name_filter(query: str):
    """
    AND of whitespace-separated terms; each term may hit first name,
    last name or slug.
    """
    terms = [t for t in query.split() if t]
    if not terms:
        return None

    clauses = []
    for term in terms:
        pattern = f"%{term}%"
        clauses.append(
            or_(
                Player.first_name.ilike(pattern),
                Player.last_name.ilike(pattern),
                Player.slug.ilike(pattern),
            )
        )
    return and_(*clauses)


def list_players(session: Session, limit: int = 25) -> List[Player]:
    return (
        session.query(Player)
        .order_by(Player.last_name.asc(), Player.first_name.asc())
        .limit(limit)
        .all()
    )


def search_players_paged(
    session: Session,
    query: str,
    page: int = 1,
    page_size: int = 20,
) -> Dict[str, Any]:
    """
    Returns {"players", "total", "page", "pageSize"}. ``page`` is clamped to
    the available range, so an out-of-range page returns the last one.
    """
    page_size = max(1, int(page_size))
    where = _name_filter((query or "").strip())

    count_q = session.query(func.count(Player.id))
    rows_q = session.query(Player)
    if where is not None:
        count_q = count_q.filter(where)
        rows_q = rows_q.filter(where)

    total = int(count_q.scalar() or 0)
    total_pages = math.ceil(total / page_size) if total > 0 else 1
    safe_page = min(max(1, int(page)), total_pages)

    players = (
        rows_q.order_by(Player.last_name.asc(), Player.first_name.asc())
        .limit(page_size)
        .offset((safe_page - 1) * page_size)
        .all()
    )

    return {"players": players, "total": total, "page": safe_page, "pageSize": page_size}


def get_player_with_logs(
    session: Session,
    player_id: int,
    limit: int = 200,
) -> Optional[Tuple[Player, List[PlayerGameLog]]]:
    """Player plus most recent game logs (newest first), or None."""
    player = session.get(Player, player_id)
    if player is None:
        return None

    logs = (
        session.query(PlayerGameLog)
        .filter(PlayerGameLog.player_id == player_id)
        # GAME_DATE is "OCT 22, 2025" and doesn't sort; game ids are sequential
        .order_by(PlayerGameLog.season_id.desc(), PlayerGameLog.game_id.desc())
        .limit(limit)
        .all()
    )
    return player, logs


def player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        "id": player.id,
        "firstName": player.first_name,
        "lastName": player.last_name,
        "slug": player.slug,
        "teamId": player.team_id,
        "teamSlug": player.team_slug,
        "teamCity": player.team_city,
        "teamName": player.team_name,
        "position": player.position,
        "jerseyNumber": player.jersey_number,
        "rosterStatus": player.roster_status,
        "height": player.height,
        "weight": player.weight,
        "fromYear": player.from_year,
        "toYear": player.to_year,
        "points": player.points,
        "rebounds": player.rebounds,
        "assists": player.assists,
    }


def game_log_to_dict(log: PlayerGameLog) -> Dict[str, Any]:
    return {
        "gameId": log.game_id,
        "seasonId": log.season_id,
        "gameDate": log.game_date,
        "matchup": log.matchup,
        "result": log.result,
        "minutes": log.minutes,
        "points": log.points,
        "rebounds": log.rebounds,
        "assists": log.assists,
        "steals": log.steals,
        "blocks": log.blocks,
        "turnovers": log.turnovers,
        "fg3m": log.fg3m,
        "fgPct": log.fg_pct,
        "ftPct": log.ft_pct,
        "threePtPct": log.three_pt_pct,
        "plusMinus": log.plus_minus,
    }
