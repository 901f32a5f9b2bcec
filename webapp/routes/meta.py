# webapp/routes/meta.py

from flask import Blueprint, jsonify
from sqlalchemy import func

from db import WebCache
from models_normalized import Player, PlayerGameLog
from webapp.runtime import current_runtime

meta_bp = Blueprint("meta", __name__, url_prefix="/api/meta")


@meta_bp.route("/health")
def health():
    rt = current_runtime()
    with rt.session_factory() as session:
        players = session.query(func.count(Player.id)).scalar() or 0
        game_logs = session.query(func.count(PlayerGameLog.id)).scalar() or 0
        cache_entries = session.query(func.count(WebCache.key)).scalar() or 0

    return jsonify(
        {
            "ok": True,
            "season": rt.season,
            "seasonType": rt.season_type,
            "players": int(players),
            "gameLogs": int(game_logs),
            "cacheEntries": int(cache_entries),
        }
    )


@meta_bp.route("/cache/prune", methods=["POST"])
def prune_cache():
    removed = current_runtime().cache.prune()
    return jsonify({"removed": removed})
