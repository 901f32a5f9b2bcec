# webapp/routes/lineups.py

from flask import Blueprint, jsonify, request

from models_normalized import LineupPlayer, Player
from webapp.runtime import current_runtime
from webapp.services.lineups import (
    add_player_to_lineup,
    build_lineup_payload,
    create_lineup,
    get_lineup,
    lineup_summaries,
    lineup_to_dict,
    remove_player_from_lineup,
    update_lineup_player_positions,
)

lineups_bp = Blueprint("lineups", __name__, url_prefix="/api/lineups")


def _lineup_not_found(lineup_id: int):
    return jsonify({"error": "Lineup not found", "lineupId": lineup_id}), 404


@lineups_bp.route("", methods=["GET"])
def list_all():
    rt = current_runtime()
    with rt.session_factory() as session:
        return jsonify({"lineups": lineup_summaries(session)})


@lineups_bp.route("", methods=["POST"])
def create():
    body = request.get_json(silent=True) or {}
    name = body.get("name")
    if not isinstance(name, str):
        name = None

    rt = current_runtime()
    with rt.session_factory() as session:
        lineup = create_lineup(session, name)
        session.commit()
        return jsonify(lineup_to_dict(lineup)), 201


@lineups_bp.route("/<int:lineup_id>", methods=["GET"])
def detail(lineup_id: int):
    rt = current_runtime()
    with rt.session_factory() as session:
        lineup = get_lineup(session, lineup_id)
        if lineup is None:
            return _lineup_not_found(lineup_id)
        return jsonify(build_lineup_payload(session, lineup))


@lineups_bp.route("/<int:lineup_id>/players/<int:player_id>", methods=["POST"])
def add_player(lineup_id: int, player_id: int):
    rt = current_runtime()

    with rt.session_factory() as session:
        if get_lineup(session, lineup_id) is None:
            return _lineup_not_found(lineup_id)

    # Player row and game logs must be persisted before the lineup can show them
    rt.ingestor.fetch_player_index(rt.season, persist_to_db=True)
    with rt.session_factory() as session:
        if session.get(Player, player_id) is None:
            return jsonify({"error": "Player not found", "playerId": player_id}), 404

    rt.ingestor.fetch_player_game_logs(player_id, rt.season, rt.season_type, persist_to_db=True)

    with rt.session_factory() as session:
        added = add_player_to_lineup(session, lineup_id, player_id)
        session.commit()
        return jsonify({"lineupId": lineup_id, "playerId": player_id, "added": added})


@lineups_bp.route("/<int:lineup_id>/players/<int:player_id>", methods=["DELETE"])
def remove_player(lineup_id: int, player_id: int):
    rt = current_runtime()
    with rt.session_factory() as session:
        removed = remove_player_from_lineup(session, lineup_id, player_id)
        session.commit()
        return jsonify({"lineupId": lineup_id, "playerId": player_id, "removed": removed})


@lineups_bp.route("/<int:lineup_id>/members/<int:lineup_player_id>/positions", methods=["PUT"])
def set_positions(lineup_id: int, lineup_player_id: int):
    body = request.get_json(silent=True) or {}
    positions = body.get("positions") or []
    if not isinstance(positions, list):
        return jsonify({"error": "positions must be a list"}), 400

    rt = current_runtime()
    with rt.session_factory() as session:
        member = session.get(LineupPlayer, lineup_player_id)
        if member is None or member.lineup_id != lineup_id:
            return jsonify({"error": "Lineup member not found"}), 404

        member = update_lineup_player_positions(session, lineup_player_id, positions)
        session.commit()
        return jsonify(
            {
                "lineupPlayerId": member.id,
                "customPositions": member.custom_positions,
            }
        )
