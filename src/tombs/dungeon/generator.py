from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from ..config import Settings
from ..errors import GenerationError
from ..items import ItemKind
from ..map.grid import GridMap, Rect
from ..map.tiles import TileKind
from ..rng import GameRandom
from .population import (
    MonsterKind,
    from_dungeon_level,
    item_weights,
    monster_weights,
    table_from_pairs,
)

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


@dataclass(frozen=True)
class MonsterSpawn:
    kind: MonsterKind
    pos: Position


@dataclass(frozen=True)
class ItemSpawn:
    kind: ItemKind
    pos: Position


@dataclass
class SpawnPoints:
    player: Position
    stairs_down: Position
    stairs_up: Optional[Position] = None
    monsters: List[MonsterSpawn] = field(default_factory=list)
    items: List[ItemSpawn] = field(default_factory=list)


class DungeonGenerator:
    """Rooms-and-corridors generator.

    Rooms are tried at random sizes and positions; each accepted room is
    joined to the previously accepted one by an L-shaped corridor, so every
    floor tile is reachable from every other. All randomness comes from a
    private ``GameRandom`` seeded with ``rng_seed``: the same level, size and
    seed always give the same map and spawns.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        gen = self.settings.generation
        self.max_room_attempts = gen.max_room_attempts
        self.room_min_size = gen.room_min_size
        self.room_max_size = gen.room_max_size
        self.max_monsters_table = table_from_pairs(gen.max_monsters)
        self.max_items_table = table_from_pairs(gen.max_items)

    def generate(self, level: int, width: int, height: int, rng_seed: int) -> Tuple[GridMap, SpawnPoints]:
        rng = GameRandom(rng_seed)
        grid = GridMap(width, height)
        rooms: List[Rect] = []
        occupied: Set[Position] = set()
        monsters: List[MonsterSpawn] = []
        items: List[ItemSpawn] = []

        for _ in range(self.max_room_attempts):
            w = rng.randint(self.room_min_size, self.room_max_size)
            h = rng.randint(self.room_min_size, self.room_max_size)
            if w >= width or h >= height:
                continue
            x = rng.randint(0, width - w - 1)
            y = rng.randint(0, height - h - 1)
            room = Rect(x, y, w, h)
            if any(room.intersects(other) for other in rooms):
                continue

            grid.carve_room(room)
            cx, cy = room.center()
            if rooms:
                px, py = rooms[-1].center()
                if rng.random() < 0.5:
                    grid.carve_h(px, cx, py)
                    grid.carve_v(py, cy, cx)
                else:
                    grid.carve_v(py, cy, px)
                    grid.carve_h(px, cx, cy)
                self._populate(rng, room, level, occupied, monsters, items)
            else:
                occupied.add((cx, cy))
            rooms.append(room)

        if not rooms:
            err = GenerationError(level, rng_seed, width, height)
            logger.error("%s", err)
            raise err

        grid.rooms = rooms
        player = rooms[0].center()
        stairs_down = rooms[-1].center()
        stairs_up: Optional[Position] = None
        if level > 1 and player != stairs_down:
            stairs_up = player
            grid.set_kind(*stairs_up, TileKind.STAIRS_UP)
        grid.set_kind(*stairs_down, TileKind.STAIRS_DOWN)

        logger.debug(
            "Generated level %d (%dx%d, seed=%d): %d rooms, %d monsters, %d items",
            level, width, height, rng_seed, len(rooms), len(monsters), len(items),
        )
        return grid, SpawnPoints(
            player=player,
            stairs_down=stairs_down,
            stairs_up=stairs_up,
            monsters=monsters,
            items=items,
        )

    def _populate(
        self,
        rng: GameRandom,
        room: Rect,
        level: int,
        occupied: Set[Position],
        monsters: List[MonsterSpawn],
        items: List[ItemSpawn],
    ) -> None:
        max_monsters = from_dungeon_level(self.max_monsters_table, level)
        for _ in range(rng.randint(0, max_monsters)):
            free = [p for p in room.interior() if p not in occupied]
            if not free:
                break
            pos = rng.choice(free)
            occupied.add(pos)
            monsters.append(MonsterSpawn(rng.weighted_choice(monster_weights(level)), pos))

        max_items = from_dungeon_level(self.max_items_table, level)
        for _ in range(rng.randint(0, max_items)):
            free = [p for p in room.interior() if p not in occupied]
            if not free:
                break
            pos = rng.choice(free)
            occupied.add(pos)
            items.append(ItemSpawn(rng.weighted_choice(item_weights(level)), pos))


__all__ = ["DungeonGenerator", "SpawnPoints", "MonsterSpawn", "ItemSpawn"]
