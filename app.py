from __future__ import annotations

import logging
from typing import Any, List, Optional

from flask import Flask, jsonify, request

from karnaugh_core.config import load_settings
from karnaugh_core.dimensions import Position, compute_game_info
from karnaugh_core.errors import ConfigurationError, KMapError, NotFoundError, ValidationError
from karnaugh_core.logging_config import configure_logging
from karnaugh_core.phases import GameType, Phase
from karnaugh_core.records import model_to_json
from karnaugh_core.service import GameService
from karnaugh_core.state import GameModel, get_winner

logger = logging.getLogger(__name__)

SETTINGS = load_settings()

app = Flask(__name__)
service = GameService(SETTINGS.db_path)


class ApiRequestError(Exception):
    pass


def _body() -> dict:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _parse_pos(game: GameModel, raw: Any) -> Position:
    """Validates a wire position against the game's board."""
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise ApiRequestError("position must be [z, y, x]")
    try:
        pos = (int(raw[0]), int(raw[1]), int(raw[2]))
    except (TypeError, ValueError):
        raise ApiRequestError("position must hold integers")
    if not game.board.contains(pos):
        raise ApiRequestError(f"position {list(pos)} is off the board")
    return pos


def _game_response(game: GameModel) -> Any:
    return jsonify({"ok": True, "state": model_to_json(game)})


# ---------- Error handling ----------

@app.errorhandler(ApiRequestError)
def handle_request_error(e: ApiRequestError) -> Any:
    return jsonify({"ok": False, "error": str(e), "code": "BAD_REQUEST"}), 400


@app.errorhandler(KMapError)
def handle_kmap_error(e: KMapError) -> Any:
    if isinstance(e, NotFoundError):
        status = 404
    elif isinstance(e, (ValidationError, ConfigurationError)):
        status = 400
    else:
        logger.error("unexpected engine error: %s", e)
        status = 500
    return jsonify({"ok": False, "error": e.message, "code": e.code, "context": e.context}), status


# ---------- Game API ----------

@app.get("/api/info/<int:num_vars>")
def api_info(num_vars: int) -> Any:
    info = compute_game_info(num_vars)
    return jsonify({
        "ok": True,
        "numVars": info.num_vars,
        "vars": {axis: list(v) for axis, v in info.vars.items()},
        "dimensions": list(info.dimensions),
        "size": info.size,
    })


@app.get("/api/games")
def api_list_games() -> Any:
    return jsonify({"ok": True, "games": [model_to_json(g) for g in service.list_games()]})


@app.get("/api/games/<int:game_id>")
def api_get_game(game_id: int) -> Any:
    return _game_response(service.get_game(game_id))


@app.post("/api/games")
def api_new_game() -> Any:
    body = _body()
    num_vars = body.get("numVars")
    if num_vars is None:
        raise ApiRequestError("numVars is required")
    if not isinstance(num_vars, int) or isinstance(num_vars, bool):
        raise ApiRequestError("numVars must be a number")
    players: List[str] = [str(p) for p in (body.get("players") or []) if p]
    try:
        phase = Phase(body.get("phase", Phase.PLACE.value))
        game_type = GameType(body.get("gameType", GameType.LOCAL.value))
    except ValueError as e:
        raise ApiRequestError(str(e))
    current_turn = body.get("currentTurn", 1)
    if not isinstance(current_turn, int) or isinstance(current_turn, bool) or current_turn not in (0, 1):
        raise ApiRequestError("currentTurn must be 0 or 1")
    game = service.create_game(num_vars, players=players, phase=phase,
                               current_turn=current_turn, game_type=game_type)
    return _game_response(game)


@app.post("/api/games/<int:game_id>/random")
def api_random(game_id: int) -> Any:
    return _game_response(service.randomize(game_id))


@app.post("/api/games/<int:game_id>/move")
def api_move(game_id: int) -> Any:
    body = _body()
    if "pos" not in body:
        raise ApiRequestError("you must send a position")
    pos = _parse_pos(service.get_game(game_id), body["pos"])
    return _game_response(service.make_move(game_id, pos))


@app.post("/api/games/<int:game_id>/group")
def api_group(game_id: int) -> Any:
    body = _body()
    selected = body.get("selected")
    if not isinstance(selected, list):
        raise ApiRequestError("you must send a selection")
    game = service.get_game(game_id)
    positions = [_parse_pos(game, p) for p in selected]
    return _game_response(service.group(game_id, positions))


@app.post("/api/games/<int:game_id>/join")
def api_join(game_id: int) -> Any:
    body = _body()
    name = body.get("playerName")
    if not isinstance(name, str):
        raise ApiRequestError("you must send a player name")
    return _game_response(service.join(game_id, name))


@app.get("/api/games/<int:game_id>/players")
def api_players(game_id: int) -> Any:
    return jsonify({"ok": True, "players": service.players(game_id)})


@app.get("/api/games/<int:game_id>/winner")
def api_winner(game_id: int) -> Any:
    game = service.get_game(game_id)
    winner: Optional[int] = get_winner(game) if game.is_over else None
    return jsonify({"ok": True, "over": game.is_over, "winner": winner})


@app.delete("/api/games/<int:game_id>")
def api_delete(game_id: int) -> Any:
    service.delete_game(game_id)
    return "", 204


# Entrypoint for "python app.py"
if __name__ == "__main__":
    configure_logging(SETTINGS.log_level)
    app.run(host=SETTINGS.host, port=SETTINGS.port, debug=SETTINGS.debug)
