from __future__ import annotations

import heapq
import logging
from itertools import count
from typing import Dict, Iterable, List, Optional, Tuple

from .map.grid import GridMap

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# A diagonal step between two orthogonal walls is not allowed
BLOCK_DIAGONAL_SQUEEZE = True


def chebyshev(a: Position, b: Position) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def find_path(
    grid: GridMap,
    start: Position,
    goal: Position,
    blocked: Iterable[Position] = (),
    *,
    block_diagonal_squeeze: bool = BLOCK_DIAGONAL_SQUEEZE,
) -> Optional[List[Position]]:
    """A* search with 8-way unit-cost moves.

    Returns the positions after ``start`` up to and including ``goal``, or
    ``None`` when the goal cannot be reached or equals the start. Positions in
    ``blocked`` (typically other entities) are treated as impassable except
    for the goal itself, so a monster can path onto its target.

    Neighbours are expanded NW, N, NE, W, E, SW, S, SE and equal-priority
    heap entries pop in insertion order, so the result is deterministic.
    """
    grid.require_in_bounds(start)
    grid.require_in_bounds(goal)
    if start == goal:
        return None
    if not grid.is_walkable(*goal):
        return None

    blocked_set = set(blocked)
    blocked_set.discard(goal)

    tie = count()
    open_heap: List[Tuple[int, int, Position]] = [(chebyshev(start, goal), next(tie), start)]
    g_score: Dict[Position, int] = {start: 0}
    came_from: Dict[Position, Position] = {}
    closed = set()

    while open_heap:
        _, _, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        if current == goal:
            path = [current]
            while path[-1] in came_from and came_from[path[-1]] != start:
                path.append(came_from[path[-1]])
            path.reverse()
            logger.debug("Path %s -> %s: %d steps", start, goal, len(path))
            return path
        closed.add(current)

        for nxt in grid.neighbors8(*current):
            if nxt in closed or nxt in blocked_set:
                continue
            if not grid.can_step(current, nxt, block_diagonal_squeeze):
                continue
            tentative = g_score[current] + 1
            if tentative < g_score.get(nxt, tentative + 1):
                g_score[nxt] = tentative
                came_from[nxt] = current
                heapq.heappush(open_heap, (tentative + chebyshev(nxt, goal), next(tie), nxt))

    logger.debug("No path %s -> %s", start, goal)
    return None


__all__ = ["find_path", "chebyshev", "BLOCK_DIAGONAL_SQUEEZE"]
