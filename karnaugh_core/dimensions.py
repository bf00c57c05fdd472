from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .errors import ConfigurationError

Dimensions = Tuple[int, int, int]  # (z, y, x), each a power of two
Position = Tuple[int, int, int]    # (z, y, x)

AXES: Tuple[str, str, str] = ("x", "y", "z")
MAX_VARS = 6
VARS_PER_AXIS = 2


@dataclass(frozen=True)
class GameInfo:
    """Static description of a board: which variables live on which axis and how big it is."""
    num_vars: int
    vars: Mapping[str, Tuple[str, ...]] = field(compare=False)  # read-only, derived from num_vars
    dimensions: Dimensions
    size: int


def compute_game_info(num_vars: int) -> GameInfo:
    """Assigns variables a, b, c, ... two per axis (x, then y, then z) and derives the board shape.

    The dimensions triple is the reversed axis order, so it indexes as (z, y, x).
    """
    if num_vars > MAX_VARS:
        raise ConfigurationError(
            f"At most {MAX_VARS} variables are supported", context={"num_vars": num_vars}
        )
    if num_vars < 1:
        raise ConfigurationError("At least one variable is required", context={"num_vars": num_vars})

    groups: List[List[str]] = [[]]
    for i in range(num_vars):
        groups[-1].append(chr(ord('a') + i))
        if len(groups[-1]) == VARS_PER_AXIS:
            groups.append([])

    var_map: Dict[str, Tuple[str, ...]] = {}
    for i, axis in enumerate(AXES):
        var_map[axis] = tuple(groups[i]) if i < len(groups) else tuple()

    x, y, z = (2 ** len(var_map[axis]) for axis in AXES)
    dimensions: Dimensions = (z, y, x)
    return GameInfo(num_vars=num_vars, vars=MappingProxyType(var_map), dimensions=dimensions, size=x * y * z)
