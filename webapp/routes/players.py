# webapp/routes/players.py

from flask import Blueprint, jsonify, request

from models_normalized import Player
from webapp.runtime import current_runtime
from webapp.services.player_queries import (
    game_log_to_dict,
    get_player_with_logs,
    player_to_dict,
    search_players_paged,
)
from webapp.services.stat_summary import summarize_player_logs

players_bp = Blueprint("players", __name__, url_prefix="/api/players")


@players_bp.route("")
def search_players():
    q = request.args.get("q", default="", type=str)
    page = request.args.get("page", default=1, type=int)
    page_size = request.args.get("pageSize", default=20, type=int)

    rt = current_runtime()
    # make sure the players table exists for this season before searching it
    rt.ingestor.fetch_player_index(rt.season, persist_to_db=True)

    with rt.session_factory() as session:
        result = search_players_paged(session, q, page=page, page_size=page_size)
        return jsonify(
            {
                "players": [player_to_dict(p) for p in result["players"]],
                "total": result["total"],
                "page": result["page"],
                "pageSize": result["pageSize"],
            }
        )


@players_bp.route("/<int:player_id>")
def player_detail(player_id: int):
    limit = request.args.get("limit", default=400, type=int)
    season = request.args.get("season", default=None, type=str)

    rt = current_runtime()
    season = season or rt.season

    # Game logs reference the player row, so it has to come from the index first
    rt.ingestor.fetch_player_index(rt.season, persist_to_db=True)
    with rt.session_factory() as session:
        if session.get(Player, player_id) is None:
            return _player_not_found(player_id)

    rt.ingestor.fetch_player_game_logs(player_id, season, rt.season_type, persist_to_db=True)

    with rt.session_factory() as session:
        data = get_player_with_logs(session, player_id, limit=limit)
        if data is None:
            return _player_not_found(player_id)

        player, logs = data
        return jsonify(
            {
                "player": player_to_dict(player),
                "logs": [game_log_to_dict(log) for log in logs],
                "summary": summarize_player_logs(logs).to_dict(),
            }
        )


def _player_not_found(player_id: int):
    return jsonify({"error": "Player not found", "playerId": player_id}), 404
