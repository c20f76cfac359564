import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from tombs.config import Settings  # noqa: E402
from tombs.dungeon.population import MonsterKind, build_monster  # noqa: E402
from tombs.entities import Entity, EntityRegistry, Fighter  # noqa: E402
from tombs.items import Inventory  # noqa: E402
from tombs.map.grid import GridMap  # noqa: E402
from tombs.rng import GameRandom  # noqa: E402
from tombs.scheduler import TurnScheduler  # noqa: E402

MONSTER_GLYPHS = {"o": MonsterKind.ORC, "T": MonsterKind.TROLL}


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def room_rows():
    return [
        "##########",
        "#........#",
        "#........#",
        "#........#",
        "#........#",
        "##########",
    ]


def make_player(pos=(0, 0), hp=100, power=2, defense=1) -> Entity:
    return Entity(
        name="Player",
        x=pos[0],
        y=pos[1],
        fighter=Fighter(max_hp=hp, hp=hp, base_power=power, base_defense=defense),
        inventory=Inventory(capacity=26),
        is_player=True,
    )


@pytest.fixture
def build_scheduler(settings):
    """Build a scheduler from an ASCII map; '@' is the player, 'o'/'T' orcs and trolls."""

    def _build(rows, *, seed=1, player_hp=100, cfg=None):
        grid = GridMap.from_ascii(rows)
        registry = EntityRegistry()
        player = None
        monsters = []
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                if ch == "@":
                    player = make_player((x, y), hp=player_hp)
                elif ch in MONSTER_GLYPHS:
                    monsters.append(build_monster(MONSTER_GLYPHS[ch], (x, y)))
        assert player is not None, "map needs an '@'"
        registry.add(player)
        for m in monsters:
            registry.add(m)
        return TurnScheduler(cfg or settings, GameRandom(seed), grid, registry)

    return _build


@pytest.fixture
def player_factory():
    return make_player
