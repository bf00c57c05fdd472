from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .dimensions import Dimensions, Position

Player = int  # 0 or 1
CellValue = Optional[Player]  # None == unset
PLAYERS: Tuple[Player, Player] = (0, 1)


def toggle_player(player: Player) -> Player:
    return 1 if player == 0 else 0


@dataclass(frozen=True)
class Board:
    """Dense 3-axis grid of cell values. Positions are (z, y, x)."""
    dimensions: Dimensions
    grid: Tuple[CellValue, ...]  # row-major, length == z * y * x

    @property
    def size(self) -> int:
        return len(self.grid)

    def index(self, pos: Position) -> int:
        """Calculates the flat index for a position."""
        _, height, width = self.dimensions
        z, y, x = pos
        return (z * height + y) * width + x

    def at(self, pos: Position) -> CellValue:
        return self.grid[self.index(pos)]

    def with_cell(self, pos: Position, value: CellValue) -> 'Board':
        """Returns a copy of the board with one cell replaced."""
        i = self.index(pos)
        grid = self.grid[:i] + (value,) + self.grid[i + 1:]
        return Board(self.dimensions, grid)

    def positions(self) -> Iterable[Position]:
        """Iterates over all positions in row-major order."""
        depth, height, width = self.dimensions
        for z in range(depth):
            for y in range(height):
                for x in range(width):
                    yield (z, y, x)

    def count(self, value: CellValue) -> int:
        return sum(1 for v in self.grid if v == value)

    def contains(self, pos: Position) -> bool:
        return len(pos) == 3 and all(0 <= p < d for p, d in zip(pos, self.dimensions))

    def to_nested(self) -> List[List[List[CellValue]]]:
        """Dense nested [z][y][x] lists, the layout stored in game records."""
        depth, height, width = self.dimensions
        return [
            [
                [self.grid[(z * height + y) * width + x] for x in range(width)]
                for y in range(height)
            ]
            for z in range(depth)
        ]

    @staticmethod
    def from_nested(dimensions: Dimensions, nested: Sequence[Sequence[Sequence[CellValue]]]) -> 'Board':
        depth, height, width = dimensions
        flat: List[CellValue] = []
        if len(nested) != depth:
            raise ValueError(f'board has {len(nested)} layers, expected {depth}')
        for layer in nested:
            if len(layer) != height:
                raise ValueError(f'board layer has {len(layer)} rows, expected {height}')
            for row in layer:
                if len(row) != width:
                    raise ValueError(f'board row has {len(row)} cells, expected {width}')
                for v in row:
                    if v is not None and v not in PLAYERS:
                        raise ValueError(f'invalid cell value: {v!r}')
                    flat.append(v)
        return Board(dimensions, tuple(flat))

    def pretty(self, grouped: Optional[Set[Position]] = None) -> str:
        """Human-readable dump, one block per z layer. Grouped cells are shown in brackets."""
        gset = grouped or set()
        depth, height, width = self.dimensions
        blocks: List[str] = []
        for z in range(depth):
            lines: List[str] = [f"z={z}"]
            for y in range(height):
                row: List[str] = []
                for x in range(width):
                    v = self.at((z, y, x))
                    mark = "." if v is None else str(v)
                    row.append(f"[{mark}]" if (z, y, x) in gset else f" {mark} ")
                lines.append("".join(row))
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)


def make_board(dimensions: Dimensions) -> Board:
    """Creates an all-unset board."""
    depth, height, width = dimensions
    return Board(dimensions, (None,) * (depth * height * width))


def make_random_board(dimensions: Dimensions, rng: Optional[random.Random] = None) -> Board:
    """Fills a board with an exact 50/50 split between the two players.

    Each cell gets a coin flip; once one player's quota is used up every
    remaining cell goes to the other player.
    """
    rng = rng or random.Random()
    depth, height, width = dimensions
    size = depth * height * width
    remaining = [size // 2, size - size // 2]
    grid: List[CellValue] = []
    for _ in range(size):
        player = 0 if rng.random() < 0.5 else 1
        if remaining[player] == 0:
            player = toggle_player(player)
        remaining[player] -= 1
        grid.append(player)
    return Board(dimensions, tuple(grid))
