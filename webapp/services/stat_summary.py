# webapp/services/stat_summary.py
"""
Derived views over persisted game logs. Pure functions: no DB, no cache, no
network; callers pass rows they already loaded.

Null policy: a stat with zero contributing observations is None (never 0, never
NaN), so "no data" stays distinguishable from "exactly zero".
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

# additive per-game stats (summed, then divided by games)
COUNTING_STATS: List[str] = [
    "minutes",
    "points",
    "rebounds",
    "assists",
    "steals",
    "blocks",
    "turnovers",
    "fg3m",
]

# per-game percentages (plain mean of the per-game values, not makes/attempts)
PCT_STATS: List[str] = ["fg_pct", "ft_pct", "three_pt_pct"]

LINEUP_COUNTING_STATS: List[str] = [
    "fg3m",
    "points",
    "rebounds",
    "assists",
    "steals",
    "blocks",
    "turnovers",
]
LINEUP_PCT_STATS: List[str] = ["fg_pct", "ft_pct"]


@dataclass
class PlayerSummary:
    games: int = 0
    wins: int = 0
    losses: int = 0
    totals: Dict[str, Optional[float]] = field(default_factory=dict)
    per_game: Dict[str, Optional[float]] = field(default_factory=dict)
    pct: Dict[str, Optional[float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LineupSummary:
    members: int = 0
    totals: Dict[str, Optional[float]] = field(default_factory=dict)
    averages: Dict[str, Optional[float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clean(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    value = float(value)
    if np.isinf(value):
        return None
    return value


def _pluck(row: Any, fields: Iterable[str]) -> Dict[str, Any]:
    # rows may be ORM objects, pydantic rows or plain dicts
    if isinstance(row, Mapping):
        return {f: row.get(f) for f in fields}
    return {f: getattr(row, f, None) for f in fields}


def _frame(rows: Sequence[Any], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame([_pluck(r, columns) for r in rows], columns=columns)


def summarize_player_logs(logs: Sequence[Any]) -> PlayerSummary:
    """
    Summarize one player's game logs (any order).

    - games: number of rows
    - wins / losses: rows whose result is "W" / "L"
    - totals: sum of each counting stat over rows that report it
    - per_game: total / games
    - pct: un-weighted mean of per-game percentages
    """
    games = len(logs)
    if games == 0:
        return PlayerSummary(
            games=0,
            wins=0,
            losses=0,
            totals={s: None for s in COUNTING_STATS},
            per_game={s: None for s in COUNTING_STATS},
            pct={s: None for s in PCT_STATS},
        )

    df = _frame(logs, ["result"] + COUNTING_STATS + PCT_STATS)

    totals: Dict[str, Optional[float]] = {}
    per_game: Dict[str, Optional[float]] = {}
    for stat in COUNTING_STATS:
        col = pd.to_numeric(df[stat], errors="coerce")
        total = _clean(col.sum(min_count=1))
        totals[stat] = total
        per_game[stat] = total / games if total is not None else None

    pct = {stat: _clean(pd.to_numeric(df[stat], errors="coerce").mean()) for stat in PCT_STATS}

    return PlayerSummary(
        games=games,
        wins=int((df["result"] == "W").sum()),
        losses=int((df["result"] == "L").sum()),
        totals=totals,
        per_game=per_game,
        pct=pct,
    )


def summarize_lineup(member_stats: Sequence[Any]) -> LineupSummary:
    """
    Combine lineup members' per-game stats.

    totals:   sum over members of each member's per-game value
    averages: totals / number of members
    Percentages are the plain mean across members that have one, in both.
    """
    count = len(member_stats)
    if count == 0:
        empty = {s: None for s in LINEUP_COUNTING_STATS + LINEUP_PCT_STATS}
        return LineupSummary(members=0, totals=dict(empty), averages=dict(empty))

    df = _frame(member_stats, LINEUP_COUNTING_STATS + LINEUP_PCT_STATS)

    totals: Dict[str, Optional[float]] = {}
    averages: Dict[str, Optional[float]] = {}

    for stat in LINEUP_COUNTING_STATS:
        total = _clean(pd.to_numeric(df[stat], errors="coerce").sum(min_count=1))
        totals[stat] = total
        averages[stat] = total / count if total is not None else None

    for stat in LINEUP_PCT_STATS:
        avg = _clean(pd.to_numeric(df[stat], errors="coerce").mean())
        totals[stat] = avg
        averages[stat] = avg

    return LineupSummary(members=count, totals=totals, averages=averages)
