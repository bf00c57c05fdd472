from __future__ import annotations

from itertools import product
from typing import Iterable, List, Sequence, Set, Tuple

from .dimensions import Dimensions, Position


def wrap_coord(value: int, size: int) -> int:
    """Wraps a single coordinate around its axis."""
    if value == size:
        return 0
    if value < 0:
        return size - 1
    return value


def next_cell(dimensions: Dimensions, delta: Sequence[int], pos: Position) -> Position:
    """Steps one cell along a single axis with toroidal wraparound.

    ``delta`` holds -1, 0 or +1 per axis; at most one axis may be nonzero.
    """
    if sum(1 for d in delta if d != 0) > 1:
        raise ValueError('Single dimension must be specified')
    z, y, x = (wrap_coord(p + d, size) for p, d, size in zip(pos, delta, dimensions))
    return (z, y, x)


def get_adjacencies(dimensions: Dimensions, pos: Position) -> List[Position]:
    """Gets the six toroidal neighbours of a position (+1 and -1 on each axis)."""
    out: List[Position] = []
    for axis in range(3):
        for step in (1, -1):
            delta = [0, 0, 0]
            delta[axis] = step
            out.append(next_cell(dimensions, delta, pos))
    return out


def axis_wraps(coords: Sequence[int], size: int) -> bool:
    """True when sorted distinct ``coords`` touch both edges of the axis and leave a gap.

    Such a run is read as wrapping around the edge rather than spanning the
    middle. This is a heuristic, not a proof: a sparse selection covering the
    full axis width can be misread.
    """
    if len(coords) <= 1:
        return False
    has_edges = coords[0] == 0 and coords[-1] == size - 1
    gap = (coords[-1] - coords[0] + 1) - len(coords)
    return has_edges and gap > 0


def expand_axis(coords: Sequence[int], wrapped: bool) -> Tuple[int, ...]:
    """Coordinates a rectangle must cover on one axis."""
    if len(coords) == 1 or wrapped:
        return tuple(coords)
    return tuple(range(coords[0], coords[-1] + 1))


def is_valid_rectangle(dimensions: Dimensions, selected: Iterable[Position]) -> bool:
    """Checks that a selection is exactly an axis-aligned box, allowing edge wraparound.

    Each axis is resolved to the coordinates the box must cover; the selection
    is valid only if it equals the cross product of those coordinate sets.
    """
    cells: Set[Position] = set(selected)
    if not cells:
        return False
    if len(cells) == 1:
        return True

    ranges: List[Tuple[int, ...]] = []
    for axis in range(3):
        coords = sorted({pos[axis] for pos in cells})
        ranges.append(expand_axis(coords, axis_wraps(coords, dimensions[axis])))

    expected = set(product(*ranges))
    return expected == cells
