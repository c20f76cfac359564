from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import ContractViolation

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


class EffectKind(Enum):
    HEAL = "heal"
    DAMAGE_BONUS = "damage_bonus"
    DEFENSE_BONUS = "defense_bonus"
    CONFUSE_TARGET = "confuse_target"
    LIGHTNING = "lightning"
    FIREBALL = "fireball"

    @property
    def single_use(self) -> bool:
        return self not in (EffectKind.DAMAGE_BONUS, EffectKind.DEFENSE_BONUS)

    @property
    def needs_target(self) -> bool:
        return self in (EffectKind.CONFUSE_TARGET, EffectKind.LIGHTNING, EffectKind.FIREBALL)


class Slot(Enum):
    HEAD = "head"
    RIGHT_HAND = "right hand"
    LEFT_HAND = "left hand"


class ItemKind(Enum):
    HEALING_POTION = "healing_potion"
    LIGHTNING_SCROLL = "lightning_scroll"
    CONFUSION_SCROLL = "confusion_scroll"
    FIREBALL_SCROLL = "fireball_scroll"
    DAGGER = "dagger"
    SWORD = "sword"
    SHIELD = "shield"


@dataclass
class Item:
    """A carried or dropped item.

    ``amount`` is the heal amount, the damage dealt, or the confusion duration
    depending on ``effect``. ``reach`` is the targeting range for lightning and
    confusion and the blast radius for fireballs.
    """

    uid: int
    kind: ItemKind
    name: str
    effect: EffectKind
    amount: int = 0
    reach: int = 0
    slot: Optional[Slot] = None
    power_bonus: int = 0
    defense_bonus: int = 0
    equipped: bool = False

    @property
    def is_equipment(self) -> bool:
        return self.slot is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "kind": self.kind.value,
            "name": self.name,
            "effect": self.effect.value,
            "amount": self.amount,
            "reach": self.reach,
            "slot": self.slot.value if self.slot else None,
            "power_bonus": self.power_bonus,
            "defense_bonus": self.defense_bonus,
            "equipped": self.equipped,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Item":
        slot = data.get("slot")
        return Item(
            uid=int(data["uid"]),
            kind=ItemKind(data["kind"]),
            name=str(data["name"]),
            effect=EffectKind(data["effect"]),
            amount=int(data.get("amount", 0)),
            reach=int(data.get("reach", 0)),
            slot=Slot(slot) if slot else None,
            power_bonus=int(data.get("power_bonus", 0)),
            defense_bonus=int(data.get("defense_bonus", 0)),
            equipped=bool(data.get("equipped", False)),
        )


class Inventory:
    """Ordered list of carried items with equipment bookkeeping.

    Indexes are what the input collaborator refers to ("use item 3"); the
    scheduler validates them before calling in, so an invalid index here is a
    contract violation rather than a user error.
    """

    def __init__(self, capacity: int = 26, items: Optional[List[Item]] = None) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: List[Item] = list(items or [])

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items))

    def __contains__(self, item: object) -> bool:
        return any(it is item for it in self._items)

    @property
    def items(self) -> Tuple[Item, ...]:
        return tuple(self._items)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.capacity

    def get(self, index: int) -> Item:
        if not 0 <= index < len(self._items):
            raise ContractViolation(f"Inventory index {index} out of range (size={len(self._items)})")
        return self._items[index]

    def add(self, item: Item) -> None:
        if self.is_full:
            raise ContractViolation(f"Inventory full ({self.capacity}); cannot add {item.name}")
        self._items.append(item)
        logger.debug("Added %s (uid=%d); size=%d", item.name, item.uid, len(self._items))

    def remove(self, item: Item) -> Item:
        for i, it in enumerate(self._items):
            if it is item:
                del self._items[i]
                item.equipped = False
                logger.debug("Removed %s (uid=%d); size=%d", item.name, item.uid, len(self._items))
                return item
        raise ContractViolation(f"Item {item.name} (uid={item.uid}) is not in this inventory")

    def pop(self, index: int) -> Item:
        return self.remove(self.get(index))

    def equipped_in(self, slot: Slot) -> Optional[Item]:
        for it in self._items:
            if it.equipped and it.slot is slot:
                return it
        return None

    def equip(self, item: Item) -> Optional[Item]:
        """Equip ``item``; returns the item previously held in that slot, if any."""
        if item not in self:
            raise ContractViolation(f"Cannot equip {item.name}: not carried")
        if item.slot is None:
            raise ContractViolation(f"Cannot equip {item.name}: not equipment")
        previous = self.equipped_in(item.slot)
        if previous is not None and previous is not item:
            previous.equipped = False
        item.equipped = True
        return previous if previous is not item else None

    def unequip(self, item: Item) -> None:
        if item not in self:
            raise ContractViolation(f"Cannot unequip {item.name}: not carried")
        item.equipped = False

    @property
    def power_bonus(self) -> int:
        return sum(it.power_bonus for it in self._items if it.equipped)

    @property
    def defense_bonus(self) -> int:
        return sum(it.defense_bonus for it in self._items if it.equipped)

    def to_dict(self) -> Dict[str, Any]:
        return {"capacity": self.capacity, "items": [it.to_dict() for it in self._items]}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Inventory":
        return Inventory(
            capacity=int(data.get("capacity", 26)),
            items=[Item.from_dict(d) for d in data.get("items", [])],
        )


class ItemsOnGround:
    """Index of unowned items lying on map tiles. Piles are stacks: last dropped is taken first."""

    def __init__(self) -> None:
        self._piles: Dict[Position, List[Item]] = {}

    def __len__(self) -> int:
        return sum(len(p) for p in self._piles.values())

    def place(self, pos: Position, item: Item) -> None:
        item.equipped = False
        self._piles.setdefault(pos, []).append(item)

    def at(self, pos: Position) -> Tuple[Item, ...]:
        return tuple(self._piles.get(pos, ()))

    def take(self, pos: Position) -> Item:
        pile = self._piles.get(pos)
        if not pile:
            raise ContractViolation(f"No item lies at {pos}")
        item = pile.pop()
        if not pile:
            del self._piles[pos]
        return item

    def positions(self) -> List[Position]:
        return sorted(self._piles)

    def clear(self) -> None:
        self._piles.clear()

    def to_list(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for pos in self.positions():
            for item in self._piles[pos]:
                out.append({"x": pos[0], "y": pos[1], "item": item.to_dict()})
        return out

    @staticmethod
    def from_list(data: List[Dict[str, Any]]) -> "ItemsOnGround":
        ground = ItemsOnGround()
        for entry in data:
            ground.place((int(entry["x"]), int(entry["y"])), Item.from_dict(entry["item"]))
        return ground
