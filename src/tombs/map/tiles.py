from dataclasses import dataclass
from enum import Enum


class TileKind(Enum):
    """Dungeon tile kinds.

    - WALL: blocks movement and sight
    - FLOOR: walkable open tile
    - DOOR: walkable; blocks sight while closed
    - STAIRS_DOWN / STAIRS_UP: walkable tiles that allow a level transition
    """

    WALL = "wall"
    FLOOR = "floor"
    DOOR = "door"
    STAIRS_DOWN = "stairs_down"
    STAIRS_UP = "stairs_up"

    @property
    def is_stairs(self) -> bool:
        return self in (TileKind.STAIRS_DOWN, TileKind.STAIRS_UP)


GLYPHS = {
    TileKind.WALL: "#",
    TileKind.FLOOR: ".",
    TileKind.STAIRS_DOWN: ">",
    TileKind.STAIRS_UP: "<",
}
CLOSED_DOOR_GLYPH = "+"
OPEN_DOOR_GLYPH = "'"


@dataclass
class Tile:
    kind: TileKind = TileKind.WALL
    door_open: bool = False
    explored: bool = False
    visible: bool = False

    @classmethod
    def wall(cls) -> "Tile":
        return cls(TileKind.WALL)

    @classmethod
    def floor(cls) -> "Tile":
        return cls(TileKind.FLOOR)

    @property
    def walkable(self) -> bool:
        return self.kind is not TileKind.WALL

    @property
    def transparent(self) -> bool:
        if self.kind is TileKind.WALL:
            return False
        if self.kind is TileKind.DOOR:
            return self.door_open
        return True

    @property
    def glyph(self) -> str:
        """Single-character rendering, handy for logs and tests."""
        if self.kind is TileKind.DOOR:
            return OPEN_DOOR_GLYPH if self.door_open else CLOSED_DOOR_GLYPH
        return GLYPHS[self.kind]

    @classmethod
    def from_glyph(cls, ch: str) -> "Tile":
        if ch == CLOSED_DOOR_GLYPH:
            return cls(TileKind.DOOR, door_open=False)
        if ch == OPEN_DOOR_GLYPH:
            return cls(TileKind.DOOR, door_open=True)
        for kind, glyph in GLYPHS.items():
            if glyph == ch:
                return cls(kind)
        # Anything unknown (e.g. '@' markers in test maps) is floor
        return cls.floor()
