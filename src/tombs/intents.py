"""Player intents: the only way input reaches the turn scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class Direction(Enum):
    NW = (-1, -1)
    N = (0, -1)
    NE = (1, -1)
    W = (-1, 0)
    E = (1, 0)
    SW = (-1, 1)
    S = (0, 1)
    SE = (1, 1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def apply(self, pos: Tuple[int, int]) -> Tuple[int, int]:
        return (pos[0] + self.dx, pos[1] + self.dy)

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> "Direction":
        return cls((dx, dy))


class Stat(Enum):
    CONSTITUTION = "constitution"
    STRENGTH = "strength"
    AGILITY = "agility"


@dataclass(frozen=True)
class Move:
    direction: Direction


@dataclass(frozen=True)
class Attack:
    direction: Direction


@dataclass(frozen=True)
class UseItem:
    index: int


@dataclass(frozen=True)
class Drop:
    index: int


@dataclass(frozen=True)
class Pickup:
    pass


@dataclass(frozen=True)
class Wait:
    pass


@dataclass(frozen=True)
class TakeStairs:
    pass


@dataclass(frozen=True)
class LevelUp:
    """Spend a pending level-up. Does not consume a turn."""

    stat: Stat


Intent = Union[Move, Attack, UseItem, Drop, Pickup, Wait, TakeStairs, LevelUp]

__all__ = [
    "Direction",
    "Stat",
    "Move",
    "Attack",
    "UseItem",
    "Drop",
    "Pickup",
    "Wait",
    "TakeStairs",
    "LevelUp",
    "Intent",
]
