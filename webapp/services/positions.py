# webapp/services/positions.py
from __future__ import annotations

import re
from typing import Iterable, List, Optional

# Lineup slots, in display order
LINEUP_POSITIONS: List[str] = ["PG", "SG", "G", "SF", "PF", "C"]

_ALLOWED = set(LINEUP_POSITIONS)


def normalize_custom_positions(values: Iterable[Optional[str]]) -> List[str]:
    """
    Keep only known tags (case/space-insensitive), deduplicated, in
    LINEUP_POSITIONS order.
    """
    selected = set()
    for value in values:
        if not value:
            continue
        tag = str(value).strip().upper()
        if tag in _ALLOWED:
            selected.add(tag)
    return [pos for pos in LINEUP_POSITIONS if pos in selected]


def infer_positions_from_player_position(raw: Optional[str]) -> List[str]:
    """
    Map the upstream POSITION string (e.g. "G-F", "Forward") onto lineup tags.
    A bare forward becomes both SF and PF.
    """
    if not raw:
        return []

    expanded: List[str] = []
    for part in re.split(r"[^A-Za-z]+", raw):
        upper = part.strip().upper()
        if not upper:
            continue
        if upper in ("F", "FWD"):
            expanded.extend(["SF", "PF"])
        else:
            expanded.append(upper)

    return normalize_custom_positions(expanded)


def resolve_lineup_positions(
    custom_positions: Optional[Iterable[str]],
    fallback_position: Optional[str],
) -> List[str]:
    custom = normalize_custom_positions(custom_positions or [])
    if custom:
        return custom
    return infer_positions_from_player_position(fallback_position)
