from __future__ import annotations

# Facade module that re-exports the K-map game engine.
# Used by the Flask app and tests; single-responsibility modules live under karnaugh_core/*.

from karnaugh_core.adjacency import (
    axis_wraps,
    expand_axis,
    get_adjacencies,
    is_valid_rectangle,
    next_cell,
    wrap_coord,
)
from karnaugh_core.board import (
    PLAYERS,
    Board,
    CellValue,
    Player,
    make_board,
    make_random_board,
    toggle_player,
)
from karnaugh_core.db import (
    db_delete_game,
    db_get_game,
    db_list_games,
    db_save_game,
)
from karnaugh_core.dimensions import Dimensions, GameInfo, Position, compute_game_info
from karnaugh_core.errors import (
    ConfigurationError,
    InvalidStateError,
    KMapError,
    NotFoundError,
    ValidationError,
)
from karnaugh_core.moves import init_game, is_valid_move, make_move, randomize_board
from karnaugh_core.phases import GameType, Phase, phase_after_move, turn_after_grouping
from karnaugh_core.reconcile import OptimisticSession, PendingAction, replay
from karnaugh_core.records import from_record, json_to_model, model_to_json, pos_from_json, to_record
from karnaugh_core.scoring import (
    ScoringState,
    group_selected,
    is_power_of_two,
    is_valid_group_selection,
    scoring_from_groups,
    ungrouped_cells,
    validate_selection,
)
from karnaugh_core.service import GameService, RoomHub, room_name
from karnaugh_core.state import GameModel, get_winner


def main() -> None:
    # CLI driver delegated to karnaugh_core.cli
    from karnaugh_core.cli import main as _main
    _main()


if __name__ == '__main__':
    main()
