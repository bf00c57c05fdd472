from __future__ import annotations

import dataclasses
import random
from typing import Optional, Sequence, Union

from .board import Player, make_board, make_random_board, toggle_player
from .dimensions import Position, compute_game_info
from .phases import GameType, Phase, accepts_moves, phase_after_move
from .state import GameModel


def init_game(
    num_vars: int,
    players: Sequence[str] = (),
    phase: Union[Phase, str] = Phase.PLACE,
    current_turn: Player = 1,
    game_type: Union[GameType, str] = GameType.LOCAL,
) -> GameModel:
    """Creates a fresh game with an all-unset board."""
    info = compute_game_info(num_vars)
    return GameModel(
        info=info,
        board=make_board(info.dimensions),
        phase=Phase(phase),
        current_turn=current_turn,
        move_counter=0,
        players=tuple(p for p in players if p)[:2],
        game_type=GameType(game_type),
    )


def is_valid_move(game: GameModel, pos: Position) -> bool:
    return accepts_moves(game.phase) and game.get_cell(pos) is None


def make_move(game: GameModel, pos: Position) -> GameModel:
    """Places the current player's mark at ``pos`` and passes the turn.

    Placing on an occupied cell (or outside the Place phase) is a no-op that
    returns ``game`` itself.
    """
    if not is_valid_move(game, pos):
        return game
    move_counter = game.move_counter + 1
    return dataclasses.replace(
        game,
        board=game.board.with_cell(pos, game.current_turn),
        current_turn=toggle_player(game.current_turn),
        move_counter=move_counter,
        phase=phase_after_move(game.phase, move_counter, game.info.size),
    )


def randomize_board(game: GameModel, rng: Optional[random.Random] = None) -> GameModel:
    """Fills the whole board 50/50 and jumps straight to the Score phase."""
    if not accepts_moves(game.phase):
        return game
    return dataclasses.replace(
        game,
        board=make_random_board(game.info.dimensions, rng),
        move_counter=game.info.size,
        phase=Phase.SCORE,
    )
