# webapp/services/__init__.py

from .nba_ingest import StatsIngestor
from .nba_upsert import upsert_player_game_logs, upsert_players
from .web_cache import CacheEntry, WebCacheStore

__all__ = [
    "StatsIngestor",
    "upsert_players",
    "upsert_player_game_logs",
    "CacheEntry",
    "WebCacheStore",
]
