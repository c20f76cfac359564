"""Level-scaled spawn tables and the monster/item templates they refer to."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple

from ..config import Settings
from ..entities import AI, Behaviour, Entity, Fighter
from ..items import EffectKind, Item, ItemKind, Slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """``value`` applies from dungeon ``level`` onward (until a later transition)."""

    level: int
    value: int


def from_dungeon_level(table: Sequence[Transition], level: int) -> int:
    """Value of the last transition whose level is <= ``level``; 0 before the first one."""
    for transition in reversed(table):
        if level >= transition.level:
            return transition.value
    return 0


def table_from_pairs(pairs: Sequence[Sequence[int]]) -> Tuple[Transition, ...]:
    return tuple(Transition(int(lvl), int(val)) for lvl, val in sorted(pairs, key=lambda p: p[0]))


class MonsterKind(Enum):
    ORC = "orc"
    TROLL = "troll"


@dataclass(frozen=True)
class MonsterTemplate:
    name: str
    max_hp: int
    defense: int
    power: int
    xp: int


MONSTERS: Dict[MonsterKind, MonsterTemplate] = {
    MonsterKind.ORC: MonsterTemplate("Orc", max_hp=20, defense=0, power=4, xp=35),
    MonsterKind.TROLL: MonsterTemplate("Troll", max_hp=30, defense=2, power=8, xp=100),
}

MONSTER_WEIGHTS: Dict[MonsterKind, Tuple[Transition, ...]] = {
    MonsterKind.ORC: (Transition(1, 80),),
    MonsterKind.TROLL: (Transition(3, 15), Transition(5, 30), Transition(7, 60)),
}

ITEM_WEIGHTS: Dict[ItemKind, Tuple[Transition, ...]] = {
    ItemKind.HEALING_POTION: (Transition(1, 35),),
    ItemKind.LIGHTNING_SCROLL: (Transition(4, 25),),
    ItemKind.FIREBALL_SCROLL: (Transition(6, 25),),
    ItemKind.CONFUSION_SCROLL: (Transition(2, 10),),
    ItemKind.SWORD: (Transition(4, 5),),
    ItemKind.SHIELD: (Transition(8, 15),),
}


def monster_weights(level: int) -> Dict[MonsterKind, int]:
    return {kind: from_dungeon_level(table, level) for kind, table in MONSTER_WEIGHTS.items()}


def item_weights(level: int) -> Dict[ItemKind, int]:
    return {kind: from_dungeon_level(table, level) for kind, table in ITEM_WEIGHTS.items()}


def build_monster(kind: MonsterKind, pos: Tuple[int, int]) -> Entity:
    t = MONSTERS[kind]
    return Entity(
        name=t.name,
        x=pos[0],
        y=pos[1],
        blocks=True,
        fighter=Fighter(max_hp=t.max_hp, hp=t.max_hp, base_power=t.power, base_defense=t.defense, xp=t.xp),
        ai=AI(Behaviour.HOSTILE),
    )


def build_item(kind: ItemKind, uid: int, settings: Settings) -> Item:
    s = settings.items
    if kind is ItemKind.HEALING_POTION:
        return Item(uid, kind, "Healing Potion", EffectKind.HEAL, amount=s.heal_amount)
    if kind is ItemKind.LIGHTNING_SCROLL:
        return Item(
            uid, kind, "Scroll of Lightning Bolt", EffectKind.LIGHTNING,
            amount=s.lightning_damage, reach=s.lightning_range,
        )
    if kind is ItemKind.FIREBALL_SCROLL:
        return Item(
            uid, kind, "Scroll of Fireball", EffectKind.FIREBALL,
            amount=s.fireball_damage, reach=s.fireball_radius,
        )
    if kind is ItemKind.CONFUSION_SCROLL:
        return Item(
            uid, kind, "Scroll of Confusion", EffectKind.CONFUSE_TARGET,
            amount=s.confuse_turns, reach=s.confuse_range,
        )
    if kind is ItemKind.DAGGER:
        return Item(uid, kind, "Dagger", EffectKind.DAMAGE_BONUS, slot=Slot.LEFT_HAND, power_bonus=2)
    if kind is ItemKind.SWORD:
        return Item(uid, kind, "Sword", EffectKind.DAMAGE_BONUS, slot=Slot.RIGHT_HAND, power_bonus=3)
    if kind is ItemKind.SHIELD:
        return Item(uid, kind, "Shield", EffectKind.DEFENSE_BONUS, slot=Slot.LEFT_HAND, defense_bonus=1)
    raise ValueError(f"Unknown item kind: {kind!r}")


__all__ = [
    "Transition",
    "from_dungeon_level",
    "table_from_pairs",
    "MonsterKind",
    "MonsterTemplate",
    "MONSTERS",
    "monster_weights",
    "item_weights",
    "build_monster",
    "build_item",
]
