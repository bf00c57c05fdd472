from __future__ import annotations

import argparse
import random
from typing import List, Optional

from .dimensions import Position
from .errors import KMapError, ValidationError
from .logging_config import configure_logging
from .moves import init_game, make_move, randomize_board
from .phases import Phase
from .scoring import group_selected, ungrouped_cells
from .state import GameModel, get_winner


def parse_position(text: str) -> Position:
    """Parses 'z,y,x' or 'z y x'."""
    sep = ',' if ',' in text else ' '
    parts = [t for t in text.strip().split(sep) if t != '']
    if len(parts) != 3:
        raise ValueError(f'expected three coordinates, got {text!r}')
    z, y, x = (int(p) for p in parts)
    return (z, y, x)


def parse_selection(text: str) -> List[Position]:
    """Parses 'z,y,x; z,y,x; ...'."""
    return [parse_position(chunk) for chunk in text.split(';') if chunk.strip()]


def _show(game: GameModel) -> None:
    print(game.board.pretty(set(game.scoring.owners)))
    print(f"phase={game.phase.value} turn=player {game.current_turn} "
          f"groups={game.scoring.group_count(0)}/{game.scoring.group_count(1)}")


def prompt_move(game: GameModel) -> Position:
    while True:
        text = input(f'Player {game.current_turn}, place at z,y,x: ')
        try:
            pos = parse_position(text)
        except ValueError:
            print('Could not parse. Try again.')
            continue
        if not game.board.contains(pos):
            print('Off the board. Try again.')
            continue
        if game.get_cell(pos) is not None:
            print('Cell already taken. Try again.')
            continue
        return pos


def prompt_group(game: GameModel) -> GameModel:
    while True:
        left = len(ungrouped_cells(game, game.current_turn))
        text = input(f'Player {game.current_turn} ({left} cells left), group z,y,x; z,y,x; ...: ')
        try:
            selection = parse_selection(text)
        except ValueError:
            print('Could not parse. Try again.')
            continue
        if not all(game.board.contains(p) for p in selection):
            print('Off the board. Try again.')
            continue
        try:
            updated = group_selected(game, selection)
        except ValidationError as e:
            print(e.message)
            continue
        if updated is game:
            print('Empty selection. Try again.')
            continue
        return updated


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='K-map grouping game (hot seat)')
    parser.add_argument('--vars', type=int, default=3, help='Number of variables (1-6)')
    parser.add_argument('--random', action='store_true', help='Fill the board randomly and skip to scoring')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for --random')
    parser.add_argument('--log-level', default='WARNING', help='Logging level')
    args = parser.parse_args(argv)

    configure_logging(args.log_level.upper())

    try:
        game = init_game(args.vars)
    except KMapError as e:
        parser.error(e.message)
        return

    print(f"Variables: {dict((k, ''.join(v)) for k, v in game.info.vars.items())}  "
          f"dimensions (z, y, x) = {game.info.dimensions}")
    if args.random:
        game = randomize_board(game, random.Random(args.seed))

    while game.phase is Phase.PLACE:
        _show(game)
        game = make_move(game, prompt_move(game))

    while game.phase is Phase.SCORE:
        _show(game)
        game = prompt_group(game)

    _show(game)
    winner = get_winner(game)
    if winner is None:
        print('Tie!')
    else:
        print(f'Player {winner} wins!')


if __name__ == '__main__':
    main()
