from .generator import DungeonGenerator, ItemSpawn, MonsterSpawn, SpawnPoints
from .population import MonsterKind, Transition, build_item, build_monster, from_dungeon_level

__all__ = [
    "DungeonGenerator",
    "SpawnPoints",
    "MonsterSpawn",
    "ItemSpawn",
    "MonsterKind",
    "Transition",
    "from_dungeon_level",
    "build_item",
    "build_monster",
]
