"""Game API blueprint.

Thin HTTP layer over `lattice.services.game_service`; no rules live here.

Status codes:
    200  success, and game-rule errors (payload carries ``error: true``)
    400  malformed request body
    404  unknown player / no active game
    503  the store failed to commit (payload carries ``retry: true``)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from lattice.errors import GameError, PersistenceError, ValidationError
from lattice.services import game_service

bp_game = Blueprint("game", __name__)

_STATUS_BY_CODE = {
    ValidationError.code: 404,
    PersistenceError.code: 503,
}


def _status_for(payload: dict) -> int:
    if not payload.get("error"):
        return 200
    return _STATUS_BY_CODE.get(payload.get("code"), 200)


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp_game.route("/api/game/start", methods=["POST"])
def game_start():
    data = _body()
    username = data.get("username")
    if not isinstance(username, str) or not username.strip():
        return jsonify({"error": True, "code": "bad_request", "message": "username required"}), 400
    owner_ref = data.get("agentId")
    try:
        result = game_service.start_game(username, owner_ref=str(owner_ref) if owner_ref is not None else None)
    except GameError as exc:
        payload = exc.to_response()
        return jsonify(payload), _status_for(payload)
    # Older terminal clients read the entry room from `location`
    result["location"] = result["room"]
    return jsonify(result), 200


@bp_game.route("/api/game/action", methods=["POST"])
def game_action():
    data = _body()
    username = data.get("username")
    action = data.get("action")
    if not isinstance(username, str) or not username.strip() or not isinstance(action, str):
        return jsonify({"error": True, "code": "bad_request", "message": "username and action required"}), 400
    target = data.get("target") or ""
    if not isinstance(target, str):
        target = str(target)
    result = game_service.perform_action(username, action, target)
    payload = dict(result.response)
    if result.player is not None:
        payload["player"] = result.player
    return jsonify(payload), _status_for(payload)


@bp_game.route("/api/game/player/<username>", methods=["GET"])
def game_player(username: str):
    player = game_service.get_player(username)
    if player is None:
        return jsonify({"error": True, "code": ValidationError.code, "message": "unknown player"}), 404
    return jsonify({"player": player}), 200
