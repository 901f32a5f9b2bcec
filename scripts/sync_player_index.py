#!/usr/bin/env python3
# scripts/sync_player_index.py
from __future__ import annotations

import argparse
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from dotenv import load_dotenv  # noqa: E402

load_dotenv(dotenv_path=os.path.join(REPO_ROOT, ".env"), override=False)

from webapp.config import Config  # noqa: E402
from webapp.errors import StatsError  # noqa: E402
from webapp.logging_utils import setup_logging  # noqa: E402
from webapp.runtime import build_runtime, config_to_dict  # noqa: E402


def main(season: str | None, allow_stale: bool) -> int:
    setup_logging(Config.LOG_LEVEL)
    rt = build_runtime(config_to_dict(Config))
    season = season or rt.season

    try:
        rows = rt.ingestor.fetch_player_index(season, persist_to_db=True, allow_stale=allow_stale)
    except StatsError as e:
        print(f"[ERR] player index season={season}: {e}")
        return 1
    finally:
        rt.close()

    print(f"[OK] season={season} players={len(rows)}")
    return 0


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--season", type=str, default=None, help="Season like 2025-26 (default: NBA_SEASON)")
    p.add_argument("--allow-stale", action="store_true", help="Serve a stale cache entry instead of refetching")
    args = p.parse_args()

    raise SystemExit(main(args.season, args.allow_stale))
