"""
Phase state machine: Place -> Score -> End.

Transitions are pure functions of the counters; nothing leaves End.
"""
from __future__ import annotations

from enum import Enum
from typing import Tuple

from .board import Player, toggle_player


class Phase(str, Enum):
    PLACE = "Place"
    SCORE = "Score"
    END = "End"


class GameType(str, Enum):
    LOCAL = "local"
    ONLINE = "online"


def accepts_moves(phase: Phase) -> bool:
    if phase is Phase.PLACE:
        return True
    elif phase is Phase.SCORE or phase is Phase.END:
        return False
    raise ValueError(f'unknown phase: {phase!r}')


def accepts_groupings(phase: Phase) -> bool:
    if phase is Phase.SCORE:
        return True
    elif phase is Phase.PLACE or phase is Phase.END:
        return False
    raise ValueError(f'unknown phase: {phase!r}')


def phase_after_move(phase: Phase, move_counter: int, size: int) -> Phase:
    """Place becomes Score once every cell has been placed."""
    if phase is Phase.PLACE:
        return Phase.SCORE if move_counter >= size else Phase.PLACE
    elif phase is Phase.SCORE or phase is Phase.END:
        return phase
    raise ValueError(f'unknown phase: {phase!r}')


def turn_after_grouping(
    phase: Phase,
    player: Player,
    grouped: Tuple[int, int],
    quota: int,
) -> Tuple[Phase, Player]:
    """Turn policy after ``player`` has grouped cells.

    The opponent moves next if they still have ungrouped cells; otherwise the
    game ends when ``player`` is done too, else ``player`` keeps the turn.
    """
    opponent = toggle_player(player)
    if grouped[opponent] != quota:
        return phase, opponent
    if grouped[player] == quota:
        return Phase.END, player
    return phase, player
