# webapp/services/lineups.py
"""
User-built lineups of players.

Like the rest of the services these functions only use the supplied Session;
they do NOT commit. Routes/scripts decide when to commit.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models_normalized import Lineup, LineupPlayer, Player, PlayerGameLog
from webapp.services.player_queries import player_to_dict
from webapp.services.positions import normalize_custom_positions, resolve_lineup_positions
from webapp.services.stat_summary import summarize_lineup

DEFAULT_LINEUP_NAME = "My lineup"


def list_lineups(session: Session) -> List[Lineup]:
    return session.query(Lineup).order_by(Lineup.created_at.asc(), Lineup.id.asc()).all()


def get_lineup(session: Session, lineup_id: int) -> Optional[Lineup]:
    return session.get(Lineup, lineup_id)


def create_lineup(session: Session, name: Optional[str]) -> Lineup:
    """
    Create a lineup, or return the existing one with the same name.
    Blank names fall back to DEFAULT_LINEUP_NAME.
    """
    value = (name or "").strip() or DEFAULT_LINEUP_NAME

    existing = session.query(Lineup).filter_by(name=value).one_or_none()
    if existing is not None:
        return existing

    lineup = Lineup(name=value)
    session.add(lineup)
    session.flush()  # ensure lineup.id is set
    return lineup


def add_player_to_lineup(session: Session, lineup_id: int, player_id: int) -> bool:
    """Returns False when the player is already in the lineup."""
    existing = (
        session.query(LineupPlayer)
        .filter_by(lineup_id=lineup_id, player_id=player_id)
        .one_or_none()
    )
    if existing is not None:
        return False

    session.add(LineupPlayer(lineup_id=lineup_id, player_id=player_id))
    session.flush()
    return True


def remove_player_from_lineup(session: Session, lineup_id: int, player_id: int) -> bool:
    deleted = (
        session.query(LineupPlayer)
        .filter_by(lineup_id=lineup_id, player_id=player_id)
        .delete(synchronize_session=False)
    )
    return bool(deleted)


def update_lineup_player_positions(
    session: Session,
    lineup_player_id: int,
    positions: Optional[Iterable[str]],
) -> Optional[LineupPlayer]:
    """
    Store the normalized position tags for one lineup member; an empty
    selection clears them (NULL) so the player's own position is used.
    """
    member = session.get(LineupPlayer, lineup_player_id)
    if member is None:
        return None

    normalized = normalize_custom_positions(positions or [])
    member.custom_positions = normalized or None
    return member


def list_lineup_with_stats(session: Session, lineup_id: int) -> List[Dict[str, Any]]:
    """
    One entry per lineup member with game count and per-game averages
    over every persisted game log of that player.
    """
    rows = (
        session.query(
            LineupPlayer,
            Player,
            func.count(PlayerGameLog.id).label("games"),
            func.avg(PlayerGameLog.fg_pct).label("fg_pct"),
            func.avg(PlayerGameLog.ft_pct).label("ft_pct"),
            func.avg(PlayerGameLog.fg3m).label("fg3m"),
            func.avg(PlayerGameLog.points).label("points"),
            func.avg(PlayerGameLog.rebounds).label("rebounds"),
            func.avg(PlayerGameLog.assists).label("assists"),
            func.avg(PlayerGameLog.steals).label("steals"),
            func.avg(PlayerGameLog.blocks).label("blocks"),
            func.avg(PlayerGameLog.turnovers).label("turnovers"),
        )
        .join(Player, LineupPlayer.player_id == Player.id)
        .outerjoin(PlayerGameLog, PlayerGameLog.player_id == Player.id)
        .filter(LineupPlayer.lineup_id == lineup_id)
        .group_by(LineupPlayer.id, Player.id)
        .order_by(LineupPlayer.id.asc())
        .all()
    )

    entries: List[Dict[str, Any]] = []
    for row in rows:
        member, player = row[0], row[1]
        stats = {
            "games": int(row.games or 0),
            "fg_pct": _float_or_none(row.fg_pct),
            "ft_pct": _float_or_none(row.ft_pct),
            "fg3m": _float_or_none(row.fg3m),
            "points": _float_or_none(row.points),
            "rebounds": _float_or_none(row.rebounds),
            "assists": _float_or_none(row.assists),
            "steals": _float_or_none(row.steals),
            "blocks": _float_or_none(row.blocks),
            "turnovers": _float_or_none(row.turnovers),
        }
        entries.append(
            {
                "lineupPlayerId": member.id,
                "player": player,
                "customPositions": member.custom_positions,
                "positions": resolve_lineup_positions(member.custom_positions, player.position),
                "stats": stats,
            }
        )
    return entries


def _float_or_none(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def lineup_to_dict(lineup: Lineup) -> Dict[str, Any]:
    return {
        "id": lineup.id,
        "name": lineup.name,
        "createdAt": lineup.created_at.isoformat() if lineup.created_at else None,
    }


def entry_to_dict(entry: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(entry)
    out["player"] = player_to_dict(entry["player"])
    return out


def build_lineup_payload(session: Session, lineup: Lineup) -> Dict[str, Any]:
    entries = list_lineup_with_stats(session, lineup.id)
    summary = summarize_lineup([e["stats"] for e in entries])
    return {
        "lineup": lineup_to_dict(lineup),
        "entries": [entry_to_dict(e) for e in entries],
        "summary": summary.to_dict(),
    }


def lineup_summaries(session: Session) -> List[Dict[str, Any]]:
    return [build_lineup_payload(session, lineup) for lineup in list_lineups(session)]
