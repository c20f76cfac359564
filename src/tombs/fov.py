"""Symmetric shadowcasting field of view.

The map is scanned as four quadrants (north, east, south, west of the
origin). Each quadrant is swept row by row outward; a row is a span of
columns between a start and an end slope, and walls narrow or split spans
for the rows behind them. Slopes are exact ``Fraction`` values so the result
is reproducible on every platform.

Floor tiles are revealed only when their centre lies inside the span, which
makes visibility symmetric: if A sees B then B sees A. Walls are revealed
whenever the span touches them so room outlines render.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from math import ceil, floor
from typing import Iterator, List, Set, Tuple

from .map.grid import GridMap

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

NORTH, EAST, SOUTH, WEST = range(4)


class _Quadrant:
    def __init__(self, cardinal: int, origin: Position) -> None:
        self.cardinal = cardinal
        self.ox, self.oy = origin

    def transform(self, depth: int, col: int) -> Position:
        if self.cardinal == NORTH:
            return (self.ox + col, self.oy - depth)
        if self.cardinal == SOUTH:
            return (self.ox + col, self.oy + depth)
        if self.cardinal == EAST:
            return (self.ox + depth, self.oy + col)
        return (self.ox - depth, self.oy + col)


class _Row:
    def __init__(self, depth: int, start_slope: Fraction, end_slope: Fraction) -> None:
        self.depth = depth
        self.start_slope = start_slope
        self.end_slope = end_slope

    def tiles(self) -> Iterator[int]:
        min_col = _round_ties_up(self.depth * self.start_slope)
        max_col = _round_ties_down(self.depth * self.end_slope)
        return iter(range(min_col, max_col + 1))

    def next(self) -> "_Row":
        return _Row(self.depth + 1, self.start_slope, self.end_slope)


def _slope(depth: int, col: int) -> Fraction:
    return Fraction(2 * col - 1, 2 * depth)


def _is_symmetric(row: _Row, col: int) -> bool:
    return row.depth * row.start_slope <= col <= row.depth * row.end_slope


def _round_ties_up(n: Fraction) -> int:
    return floor(n + Fraction(1, 2))


def _round_ties_down(n: Fraction) -> int:
    return ceil(n - Fraction(1, 2))


def compute_visible(grid: GridMap, origin: Position, radius: int) -> Set[Position]:
    """Return every position visible from ``origin`` within Euclidean ``radius``.

    The origin is always visible. Tiles outside the map count as opaque and
    are never returned.
    """
    grid.require_in_bounds(origin)
    if radius < 0:
        raise ValueError(f"FOV radius must be non-negative, got {radius}")

    ox, oy = origin
    r2 = radius * radius
    visible: Set[Position] = {origin}

    for cardinal in (NORTH, EAST, SOUTH, WEST):
        quadrant = _Quadrant(cardinal, origin)

        def reveal(depth: int, col: int) -> None:
            x, y = quadrant.transform(depth, col)
            if grid.in_bounds(x, y) and (x - ox) ** 2 + (y - oy) ** 2 <= r2:
                visible.add((x, y))

        def is_wall(depth: int, col: int) -> bool:
            x, y = quadrant.transform(depth, col)
            return not grid.is_transparent(x, y)

        rows: List[_Row] = [_Row(1, Fraction(-1), Fraction(1))]
        while rows:
            row = rows.pop()
            if row.depth > radius:
                continue
            prev_wall = None
            for col in row.tiles():
                wall = is_wall(row.depth, col)
                if wall or _is_symmetric(row, col):
                    reveal(row.depth, col)
                if prev_wall is True and not wall:
                    row.start_slope = _slope(row.depth, col)
                if prev_wall is False and wall:
                    next_row = row.next()
                    next_row.end_slope = _slope(row.depth, col)
                    rows.append(next_row)
                prev_wall = wall
            if prev_wall is False:
                rows.append(row.next())

    logger.debug("FOV from %s r=%d: %d tiles visible", origin, radius, len(visible))
    return visible


def update_visibility(grid: GridMap, origin: Position, radius: int) -> Set[Position]:
    """Recompute the grid's ``visible`` flags from ``origin`` and extend ``explored``."""
    visible = compute_visible(grid, origin, radius)
    grid.reset_visible()
    grid.mark_visible(visible)
    return visible


__all__ = ["compute_visible", "update_visibility"]
