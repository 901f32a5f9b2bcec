#!/usr/bin/env python3
# scripts/sync_game_logs.py
from __future__ import annotations

import argparse
import os
import sys
from typing import List

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from dotenv import load_dotenv  # noqa: E402

load_dotenv(dotenv_path=os.path.join(REPO_ROOT, ".env"), override=False)

from models_normalized import LineupPlayer, Player  # noqa: E402
from webapp.config import Config  # noqa: E402
from webapp.errors import StatsError  # noqa: E402
from webapp.logging_utils import setup_logging  # noqa: E402
from webapp.runtime import build_runtime, config_to_dict  # noqa: E402


def _lineup_player_ids(session) -> List[int]:
    rows = session.query(LineupPlayer.player_id).distinct().order_by(LineupPlayer.player_id).all()
    return [int(r[0]) for r in rows]


def main(player_ids: List[int], season: str | None, season_type: str | None, lineups: bool) -> int:
    setup_logging(Config.LOG_LEVEL)
    rt = build_runtime(config_to_dict(Config))
    season = season or rt.season
    season_type = season_type or rt.season_type
    failures = 0

    try:
        if lineups:
            with rt.session_factory() as session:
                player_ids = sorted(set(player_ids) | set(_lineup_player_ids(session)))

        if not player_ids:
            print("[SKIP] no player ids given (use --player-id or --lineups)")
            return 0

        # game logs reference players, so the index goes first
        rt.ingestor.fetch_player_index(season, persist_to_db=True)

        with rt.session_factory() as session:
            known = {pid for pid in player_ids if session.get(Player, pid) is not None}

        for player_id in player_ids:
            if player_id not in known:
                failures += 1
                print(f"[ERR] player={player_id} season={season}: not in the player index")
                continue
            try:
                logs = rt.ingestor.fetch_player_game_logs(
                    player_id, season, season_type, persist_to_db=True
                )
            except StatsError as e:
                failures += 1
                print(f"[ERR] player={player_id} season={season}: {e}")
                continue
            print(f"[OK] player={player_id} season={season} games={len(logs)}")
    finally:
        rt.close()

    return 1 if failures else 0


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--player-id", type=int, action="append", default=[], help="Repeatable")
    p.add_argument("--lineups", action="store_true", help="Also sync every player that is in a lineup")
    p.add_argument("--season", type=str, default=None, help="Season like 2025-26 (default: NBA_SEASON)")
    p.add_argument("--season-type", type=str, default=None, help='e.g. "Regular Season", "Playoffs"')
    args = p.parse_args()

    raise SystemExit(main(args.player_id, args.season, args.season_type, args.lineups))
