"""Marching squares — trace one closed contour along the threshold crossing.

Each step classifies the 2x2 window with upper-left corner (x, y):

    bit 1: (x, y)       bit 2: (x + 1, y)
    bit 4: (x, y + 1)   bit 8: (x + 1, y + 1)

A corner is filled when its value exceeds the threshold. The resulting code
selects the next travel direction; the saddle codes 6 and 9 depend on the
previous direction.
"""

from __future__ import annotations

import enum
import logging
import math

from bubblesets.engine.potential import PotentialArea

logger = logging.getLogger(__name__)

# Walk cap, in steps per grid cell. A closed walk visits each cell corner at
# most a few times.
_MAX_STEPS_PER_CELL = 4

_FULL = 15


class Direction(enum.Enum):
    N = (0, -1)
    S = (0, 1)
    E = (1, 0)
    W = (-1, 0)


_FIXED_MOVES: dict[int, Direction] = {
    0: Direction.E,
    2: Direction.E,
    3: Direction.E,
    7: Direction.E,
    4: Direction.W,
    12: Direction.W,
    14: Direction.W,
    1: Direction.N,
    5: Direction.N,
    13: Direction.N,
    8: Direction.S,
    10: Direction.S,
    11: Direction.S,
}


def cell_state(potential: PotentialArea, x: int, y: int, threshold: float) -> int | None:
    """4-bit corner code of the window at (x, y); None if it leaves the grid."""
    state = 0
    for bit, (dx, dy) in ((1, (0, 0)), (2, (1, 0)), (4, (0, 1)), (8, (1, 1))):
        v = potential.get(x + dx, y + dy)
        if math.isnan(v):
            return None
        if v > threshold:
            state |= bit
    return state


def next_direction(state: int, previous: Direction) -> Direction | None:
    if state == 6:
        return Direction.W if previous is Direction.N else Direction.E
    if state == 9:
        return Direction.N if previous is Direction.E else Direction.S
    return _FIXED_MOVES.get(state)


def _find_start(potential: PotentialArea, threshold: float) -> tuple[int, int] | None:
    for x in range(potential.width):
        for y in range(potential.height):
            if potential.values[y, x] > threshold and cell_state(potential, x, y, threshold) != _FULL:
                return (x, y)
    return None


def trace_contour(potential: PotentialArea, threshold: float) -> list[tuple[float, float]]:
    """Walk the first boundary found; return grid-space points (x*pg, y*pg).

    Returns an empty list when no cell exceeds the threshold.
    """
    start = _find_start(potential, threshold)
    if start is None:
        return []

    step = potential.pixel_group
    x, y = start
    direction = Direction.S
    contour: list[tuple[float, float]] = []
    seen: set[tuple[float, float]] = set()
    max_steps = _MAX_STEPS_PER_CELL * max(potential.cell_count, 1)

    for _ in range(max_steps):
        p = (float(x * step), float(y * step))
        if p in seen:
            if p == contour[0]:
                return contour
        else:
            seen.add(p)
            contour.append(p)

        state = cell_state(potential, x, y, threshold)
        if state is None:
            logger.warning(
                "Marched out of bounds at (%d, %d), grid %dx%d",
                x, y, potential.width, potential.height,
            )
            return contour
        move = next_direction(state, direction)
        if move is None:
            logger.warning("Marching squares hit invalid state %d at (%d, %d)", state, x, y)
            return contour
        direction = move
        dx, dy = direction.value
        x += dx
        y += dy

    logger.warning("Marching squares stopped after %d steps without closing", max_steps)
    return contour
