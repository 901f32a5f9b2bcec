# webapp/config.py

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env into environment variables
load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


# ---------------------------------------------------------------------------
# Module-level constants (for scripts)
# ---------------------------------------------------------------------------

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///skill_issue.db")

NBA_SEASON = os.getenv("NBA_SEASON", "2025-26")
NBA_SEASON_TYPE = os.getenv("NBA_SEASON_TYPE", "Regular Season")

NBA_API_BASE_URL = os.getenv("NBA_API_BASE_URL", "https://stats.nba.com/stats")
NBA_API_TIMEOUT_SECONDS = float(os.getenv("NBA_API_TIMEOUT_SECONDS", "30"))

# Player index barely moves during a day; game logs change after every game
PLAYER_INDEX_TTL_SECONDS = int(os.getenv("PLAYER_INDEX_TTL_SECONDS", str(60 * 60 * 6)))
PLAYER_INDEX_STALE_AFTER_SECONDS = _optional_int("PLAYER_INDEX_STALE_AFTER_SECONDS")
GAME_LOG_TTL_SECONDS = int(os.getenv("GAME_LOG_TTL_SECONDS", "900"))
GAME_LOG_STALE_AFTER_SECONDS = int(os.getenv("GAME_LOG_STALE_AFTER_SECONDS", "3600"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Flask Config object (used by create_app)
# ---------------------------------------------------------------------------

class Config:
    DATABASE_URL = DATABASE_URL

    NBA_SEASON = NBA_SEASON
    NBA_SEASON_TYPE = NBA_SEASON_TYPE

    NBA_API_BASE_URL = NBA_API_BASE_URL
    NBA_API_TIMEOUT_SECONDS = NBA_API_TIMEOUT_SECONDS

    PLAYER_INDEX_TTL_SECONDS = PLAYER_INDEX_TTL_SECONDS
    PLAYER_INDEX_STALE_AFTER_SECONDS = PLAYER_INDEX_STALE_AFTER_SECONDS
    GAME_LOG_TTL_SECONDS = GAME_LOG_TTL_SECONDS
    GAME_LOG_STALE_AFTER_SECONDS = GAME_LOG_STALE_AFTER_SECONDS

    LOG_LEVEL = LOG_LEVEL
