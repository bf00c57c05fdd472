"""
Conversion between GameModel and plain data.

``to_record`` / ``from_record`` produce the flat persisted layout;
``model_to_json`` / ``json_to_model`` produce the camelCase payload the HTTP
API exchanges with clients.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .board import PLAYERS, Board, make_board
from .dimensions import Position, compute_game_info
from .errors import InvalidStateError
from .phases import GameType, Phase
from .scoring import ScoringState, scoring_from_groups
from .state import GameModel, get_winner


def _pos_to_json(pos: Position) -> List[int]:
    return [int(pos[0]), int(pos[1]), int(pos[2])]


def pos_from_json(obj: Sequence[Any]) -> Position:
    z, y, x = obj
    return (int(z), int(y), int(x))


def _groups_to_json(scoring: ScoringState) -> Dict[str, List[List[List[int]]]]:
    return {
        str(player): [[_pos_to_json(p) for p in group] for group in scoring.groups[player]]
        for player in PLAYERS
    }


def _groups_from_json(obj: Optional[Mapping[Any, Any]]) -> ScoringState:
    if not obj:
        return ScoringState()
    groups = {}
    for player in PLAYERS:
        raw = obj.get(str(player), obj.get(player, []))  # type: ignore[call-overload]
        groups[player] = [[pos_from_json(p) for p in group] for group in raw]
    return scoring_from_groups(groups)


def to_record(game: GameModel) -> Dict[str, Any]:
    """Flat record: what the persistence layer stores for a game."""
    players = list(game.players) + [None, None]
    return {
        "id": game.id,
        "game_type": game.game_type.value,
        "num_vars": game.num_vars,
        "player1": players[0],
        "player2": players[1],
        "phase": game.phase.value,
        "current_turn": game.current_turn,
        "move_counter": game.move_counter,
        "board": game.board.to_nested(),
        "scoring_groups": _groups_to_json(game.scoring),
    }


def from_record(rec: Mapping[str, Any]) -> GameModel:
    """Rebuilds a GameModel from a flat record. Derived scoring lookups are recomputed."""
    try:
        info = compute_game_info(int(rec["num_vars"]))
        board_in = rec.get("board")
        board = make_board(info.dimensions) if board_in is None else Board.from_nested(info.dimensions, board_in)
        players = tuple(p for p in (rec.get("player1"), rec.get("player2")) if p)
        current_turn = int(rec["current_turn"])
        if current_turn not in PLAYERS:
            raise ValueError(f"invalid current turn: {current_turn}")
        return GameModel(
            info=info,
            board=board,
            phase=Phase(rec.get("phase", Phase.PLACE.value)),
            current_turn=current_turn,
            move_counter=int(rec.get("move_counter", 0)),
            scoring=_groups_from_json(rec.get("scoring_groups")),
            players=players,
            game_type=GameType(rec.get("game_type", GameType.LOCAL.value)),
            id=rec.get("id"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidStateError(f"bad game record: {e}", context={"id": rec.get("id")}) from e


def model_to_json(game: GameModel) -> Dict[str, Any]:
    info = game.info
    return {
        "id": game.id,
        "gameType": game.game_type.value,
        "numVars": info.num_vars,
        "vars": {axis: list(letters) for axis, letters in info.vars.items()},
        "dimensions": list(info.dimensions),
        "size": info.size,
        "players": list(game.players),
        "phase": game.phase.value,
        "currentTurn": game.current_turn,
        "moveCounter": game.move_counter,
        "board": game.board.to_nested(),
        "groups": _groups_to_json(game.scoring),
        "groupedCounts": list(game.scoring.grouped),
        "winner": get_winner(game) if game.is_over else None,
    }


def json_to_model(obj: Mapping[str, Any]) -> GameModel:
    return from_record({
        "id": obj.get("id"),
        "game_type": obj.get("gameType", GameType.LOCAL.value),
        "num_vars": obj["numVars"],
        "player1": (obj.get("players") or [None])[0],
        "player2": (list(obj.get("players") or []) + [None, None])[1],
        "phase": obj.get("phase", Phase.PLACE.value),
        "current_turn": obj.get("currentTurn", 1),
        "move_counter": obj.get("moveCounter", 0),
        "board": obj.get("board"),
        "scoring_groups": obj.get("groups"),
    })
