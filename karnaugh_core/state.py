from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .board import Board, CellValue, Player
from .dimensions import GameInfo, Position
from .phases import GameType, Phase
from .scoring import ScoringState


@dataclass(frozen=True)
class GameModel:
    """Aggregate root for one game. Every operation returns a new instance."""
    info: GameInfo
    board: Board
    phase: Phase = Phase.PLACE
    current_turn: Player = 1
    move_counter: int = 0
    scoring: ScoringState = field(default_factory=ScoringState)
    players: Tuple[str, ...] = ()
    game_type: GameType = GameType.LOCAL
    id: Optional[int] = None

    @property
    def num_vars(self) -> int:
        return self.info.num_vars

    def get_cell(self, pos: Position) -> CellValue:
        return self.board.at(pos)

    def set_cell(self, pos: Position, value: CellValue) -> 'GameModel':
        """Returns a copy with one cell overwritten. Counters and phase are left alone."""
        return dataclasses.replace(self, board=self.board.with_cell(pos, value))

    def with_id(self, game_id: Optional[int]) -> 'GameModel':
        return dataclasses.replace(self, id=game_id)

    def with_players(self, players: Tuple[str, ...]) -> 'GameModel':
        return dataclasses.replace(self, players=tuple(players))

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.END


def get_winner(game: GameModel) -> Optional[Player]:
    """The player with strictly fewer groups wins; equal counts are a tie (None)."""
    p0 = game.scoring.group_count(0)
    p1 = game.scoring.group_count(1)
    if p0 == p1:
        return None
    return 0 if p0 < p1 else 1
