from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..errors import ContractViolation
from ..items import ItemsOnGround
from .tiles import Tile, TileKind

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# NW, N, NE, W, E, SW, S, SE: left-to-right, top-to-bottom
NEIGHBOR_OFFSETS: Tuple[Position, ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned room rectangle. The border row/column stays wall; only the interior is carved."""

    x: int
    y: int
    w: int
    h: int

    @property
    def x2(self) -> int:
        return self.x + self.w

    @property
    def y2(self) -> int:
        return self.y + self.h

    def center(self) -> Position:
        return ((self.x + self.x2) // 2, (self.y + self.y2) // 2)

    def intersects(self, other: "Rect") -> bool:
        # Inclusive on the borders so two rooms never share a wall
        return self.x <= other.x2 and self.x2 >= other.x and self.y <= other.y2 and self.y2 >= other.y

    def interior(self) -> Iterator[Position]:
        for yy in range(self.y + 1, self.y2):
            for xx in range(self.x + 1, self.x2):
                yield (xx, yy)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Rect":
        return Rect(int(data["x"]), int(data["y"]), int(data["w"]), int(data["h"]))


class GridMap:
    """Fixed-size tile grid for one dungeon level.

    Row-major storage addressed as ``(x, y)``. Query helpers treat
    out-of-bounds positions as walls; ``require_in_bounds`` is the strict gate
    used at the public seams of the core.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Map dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._tiles: List[List[Tile]] = [[Tile.wall() for _ in range(width)] for _ in range(height)]
        self.rooms: List[Rect] = []
        self.ground_items = ItemsOnGround()

    # Bounds

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def require_in_bounds(self, pos: Position) -> None:
        x, y = pos
        if not self.in_bounds(x, y):
            logger.error("Position %s outside %dx%d map", pos, self.width, self.height)
            raise ContractViolation(f"Position {pos} outside map bounds {self.width}x{self.height}")

    # Tiles

    def tile(self, x: int, y: int) -> Tile:
        self.require_in_bounds((x, y))
        return self._tiles[y][x]

    def set_kind(self, x: int, y: int, kind: TileKind) -> None:
        t = self.tile(x, y)
        t.kind = kind
        if kind is not TileKind.DOOR:
            t.door_open = False

    def is_walkable(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self._tiles[y][x].walkable

    def is_transparent(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self._tiles[y][x].transparent

    def can_step(self, src: Position, dst: Position, block_diagonal_squeeze: bool = True) -> bool:
        """True when a single move from ``src`` to the adjacent ``dst`` is legal terrain-wise."""
        dx, dy = dst[0] - src[0], dst[1] - src[1]
        if max(abs(dx), abs(dy)) != 1:
            return False
        if not self.is_walkable(*dst):
            return False
        if block_diagonal_squeeze and dx != 0 and dy != 0:
            if not self.is_walkable(src[0] + dx, src[1]) and not self.is_walkable(src[0], src[1] + dy):
                return False
        return True

    def neighbors8(self, x: int, y: int) -> Iterator[Position]:
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield (nx, ny)

    def walkable_positions(self) -> List[Position]:
        return [(x, y) for y in range(self.height) for x in range(self.width) if self._tiles[y][x].walkable]

    def find(self, kind: TileKind) -> Optional[Position]:
        for y in range(self.height):
            for x in range(self.width):
                if self._tiles[y][x].kind is kind:
                    return (x, y)
        return None

    # Carving

    def carve_room(self, rect: Rect) -> None:
        for x, y in rect.interior():
            if self.in_bounds(x, y):
                self._tiles[y][x].kind = TileKind.FLOOR

    def carve_h(self, x1: int, x2: int, y: int) -> None:
        for x in range(min(x1, x2), max(x1, x2) + 1):
            if self.in_bounds(x, y):
                self._tiles[y][x].kind = TileKind.FLOOR

    def carve_v(self, y1: int, y2: int, x: int) -> None:
        for y in range(min(y1, y2), max(y1, y2) + 1):
            if self.in_bounds(x, y):
                self._tiles[y][x].kind = TileKind.FLOOR

    # Visibility flags

    def reset_visible(self) -> None:
        for row in self._tiles:
            for t in row:
                t.visible = False

    def mark_visible(self, positions: Iterable[Position]) -> None:
        for x, y in positions:
            t = self._tiles[y][x]
            t.visible = True
            t.explored = True

    def visible_positions(self) -> List[Position]:
        return [(x, y) for y in range(self.height) for x in range(self.width) if self._tiles[y][x].visible]

    def explored_count(self) -> int:
        return sum(1 for row in self._tiles for t in row if t.explored)

    # Search

    def bfs_distances(self, start: Position, block_diagonal_squeeze: bool = True) -> Dict[Position, int]:
        """Step counts from ``start`` to every reachable walkable tile using 8-way moves."""
        self.require_in_bounds(start)
        dist: Dict[Position, int] = {start: 0}
        if not self.is_walkable(*start):
            return dist
        dq = deque([start])
        while dq:
            cur = dq.popleft()
            for nxt in self.neighbors8(*cur):
                if nxt in dist or not self.can_step(cur, nxt, block_diagonal_squeeze):
                    continue
                dist[nxt] = dist[cur] + 1
                dq.append(nxt)
        return dist

    # ASCII / snapshot

    @classmethod
    def from_ascii(cls, lines: Sequence[str]) -> "GridMap":
        rows = [line for line in lines if line != ""]
        if not rows:
            raise ValueError("ASCII map is empty")
        width = len(rows[0])
        if any(len(r) != width for r in rows):
            raise ValueError("ASCII map rows must all have the same width")
        grid = cls(width, len(rows))
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                grid._tiles[y][x] = Tile.from_glyph(ch)
        return grid

    def to_str_lines(self) -> List[str]:
        return ["".join(t.glyph for t in row) for row in self._tiles]

    def snapshot(self) -> Tuple[Tuple[str, ...], ...]:
        """Hashable snapshot of tile kinds for equality tests."""
        return tuple(tuple(t.kind.value for t in row) for row in self._tiles)

    # Persistence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "tiles": self.to_str_lines(),
            "explored": ["".join("1" if t.explored else "0" for t in row) for row in self._tiles],
            "rooms": [r.to_dict() for r in self.rooms],
            "ground_items": self.ground_items.to_list(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GridMap":
        grid = cls.from_ascii(data["tiles"])
        if (grid.width, grid.height) != (int(data["width"]), int(data["height"])):
            raise ValueError("Tile rows do not match the declared map size")
        for y, row in enumerate(data.get("explored", [])):
            for x, flag in enumerate(row):
                grid._tiles[y][x].explored = flag == "1"
        grid.rooms = [Rect.from_dict(r) for r in data.get("rooms", [])]
        grid.ground_items = ItemsOnGround.from_list(data.get("ground_items", []))
        return grid


__all__ = ["GridMap", "Rect", "Position", "NEIGHBOR_OFFSETS"]
