from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, List, Mapping, Sequence, Tuple

from .adjacency import is_valid_rectangle
from .board import PLAYERS, Player
from .dimensions import Position
from .errors import ValidationError
from .phases import accepts_groupings, turn_after_grouping

if TYPE_CHECKING:
    from .state import GameModel

logger = logging.getLogger(__name__)

Group = Tuple[Position, ...]


@dataclass(frozen=True)
class ScoringState:
    """Accepted groups per player plus the derived lookups used while scoring."""
    groups: Tuple[Tuple[Group, ...], Tuple[Group, ...]] = ((), ())
    # position -> grouping player; read-only, derived from groups
    owners: Mapping[Position, Player] = field(default_factory=lambda: MappingProxyType({}), compare=False)
    grouped: Tuple[int, int] = (0, 0)  # cells grouped per player

    def group_count(self, player: Player) -> int:
        return len(self.groups[player])

    def is_grouped(self, pos: Position) -> bool:
        return pos in self.owners

    def add_group(self, player: Player, group: Group) -> 'ScoringState':
        """Returns a new state with ``group`` recorded for ``player``."""
        groups = list(self.groups)
        groups[player] = groups[player] + (group,)
        owners: Dict[Position, Player] = dict(self.owners)
        for pos in group:
            owners[pos] = player
        grouped = list(self.grouped)
        grouped[player] += len(group)
        return ScoringState(
            groups=(groups[0], groups[1]),
            owners=MappingProxyType(owners),
            grouped=(grouped[0], grouped[1]),
        )


def scoring_from_groups(groups: Mapping[Player, Sequence[Sequence[Position]]]) -> ScoringState:
    """Rebuilds a ScoringState from per-player group lists (e.g. a stored record)."""
    state = ScoringState()
    for player in PLAYERS:
        for group in groups.get(player, ()):
            state = state.add_group(player, tuple(tuple(p) for p in group))  # type: ignore[misc]
    return state


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def validate_selection(game: 'GameModel', selected: Sequence[Position]) -> None:
    """Raises ValidationError naming the first rule a non-empty selection breaks."""
    player = game.current_turn
    if any(game.get_cell(pos) != player for pos in selected):
        raise ValidationError("Invalid selection: cannot group unowned cells", reason="unowned")
    if len(set(selected)) != len(selected):
        raise ValidationError("Invalid selection: repeated cells", reason="duplicate")
    if any(game.scoring.is_grouped(pos) for pos in selected):
        raise ValidationError("Invalid selection: cells are already grouped", reason="already_grouped")
    if len(selected) > 1 and not is_power_of_two(len(selected)):
        raise ValidationError("Invalid selection: not a power of two", reason="not_power_of_two")
    if not is_valid_rectangle(game.info.dimensions, selected):
        raise ValidationError("Invalid selection: not a rectangle", reason="not_rectangle")


def is_valid_group_selection(game: 'GameModel', selected: Sequence[Position]) -> bool:
    if not selected:
        return False
    try:
        validate_selection(game, selected)
    except ValidationError:
        return False
    return True


def group_selected(game: 'GameModel', selected: Sequence[Position]) -> 'GameModel':
    """Accepts ``selected`` as a new group for the current player.

    An empty selection returns ``game`` unchanged. Any rule violation raises
    ValidationError and leaves ``game`` untouched.
    """
    if not selected:
        return game
    if not accepts_groupings(game.phase):
        raise ValidationError(f"Cannot group cells in {game.phase.value} phase", reason="wrong_phase")

    group: Group = tuple(tuple(pos) for pos in selected)  # type: ignore[misc]
    validate_selection(game, group)

    player = game.current_turn
    scoring = game.scoring.add_group(player, group)
    phase, turn = turn_after_grouping(game.phase, player, scoring.grouped, game.info.size // 2)
    logger.debug("player %d grouped %d cells; next turn %d, phase %s", player, len(group), turn, phase.value)
    return dataclasses.replace(game, scoring=scoring, phase=phase, current_turn=turn)


def ungrouped_cells(game: 'GameModel', player: Player) -> List[Position]:
    """Cells owned by ``player`` that no group covers yet."""
    return [
        pos for pos in game.board.positions()
        if game.board.at(pos) == player and not game.scoring.is_grouped(pos)
    ]
