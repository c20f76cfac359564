from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .errors import ContractViolation
from .items import Inventory

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


@dataclass
class Fighter:
    """Combat stats. ``hp`` is always kept inside ``[0, max_hp]``.

    ``xp`` is what a monster is worth to its killer, and what the player has
    accumulated so far.
    """

    max_hp: int
    hp: int
    base_power: int
    base_defense: int
    xp: int = 0

    def __post_init__(self) -> None:
        if self.max_hp <= 0:
            raise ValueError("max_hp must be positive")
        self.hp = max(0, min(self.hp, self.max_hp))

    @property
    def alive(self) -> bool:
        return self.hp > 0

    def take_damage(self, amount: int) -> int:
        """Apply non-negative damage; returns the hp actually lost."""
        if amount < 0:
            raise ValueError("damage must be non-negative")
        before = self.hp
        self.hp = max(0, self.hp - amount)
        return before - self.hp

    def heal(self, amount: int) -> int:
        """Restore hp up to max_hp; returns the hp actually gained."""
        if amount < 0:
            raise ValueError("heal amount must be non-negative")
        before = self.hp
        self.hp = min(self.max_hp, self.hp + amount)
        return self.hp - before

    def to_dict(self) -> Dict[str, int]:
        return {
            "max_hp": self.max_hp,
            "hp": self.hp,
            "base_power": self.base_power,
            "base_defense": self.base_defense,
            "xp": self.xp,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Fighter":
        return Fighter(
            max_hp=int(data["max_hp"]),
            hp=int(data["hp"]),
            base_power=int(data["base_power"]),
            base_defense=int(data["base_defense"]),
            xp=int(data.get("xp", 0)),
        )


class Behaviour(Enum):
    IDLE = "idle"
    HOSTILE = "hostile"
    CONFUSED = "confused"


@dataclass
class AI:
    behaviour: Behaviour = Behaviour.HOSTILE
    previous: Optional[Behaviour] = None
    confused_turns: int = 0

    def confuse(self, turns: int) -> None:
        if turns <= 0:
            raise ValueError("confusion must last at least one turn")
        # Re-confusing keeps the behaviour to return to
        if self.behaviour is not Behaviour.CONFUSED:
            self.previous = self.behaviour
        self.behaviour = Behaviour.CONFUSED
        self.confused_turns = turns

    def tick_confusion(self) -> bool:
        """Count down one confused turn. Returns True when the confusion just wore off."""
        if self.behaviour is not Behaviour.CONFUSED:
            return False
        self.confused_turns = max(0, self.confused_turns - 1)
        if self.confused_turns == 0:
            self.behaviour = self.previous or Behaviour.HOSTILE
            self.previous = None
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "behaviour": self.behaviour.value,
            "previous": self.previous.value if self.previous else None,
            "confused_turns": self.confused_turns,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AI":
        prev = data.get("previous")
        return AI(
            behaviour=Behaviour(data["behaviour"]),
            previous=Behaviour(prev) if prev else None,
            confused_turns=int(data.get("confused_turns", 0)),
        )


@dataclass
class Entity:
    """Anything placed on the map. Capabilities are optional records."""

    name: str
    x: int
    y: int
    blocks: bool = True
    fighter: Optional[Fighter] = None
    ai: Optional[AI] = None
    inventory: Optional[Inventory] = None
    is_player: bool = False
    level: int = 1
    id: int = field(default=-1)

    @property
    def pos(self) -> Position:
        return (self.x, self.y)

    @property
    def alive(self) -> bool:
        return self.fighter is not None and self.fighter.alive

    @property
    def power(self) -> int:
        if self.fighter is None:
            return 0
        bonus = self.inventory.power_bonus if self.inventory is not None else 0
        return self.fighter.base_power + bonus

    @property
    def defense(self) -> int:
        if self.fighter is None:
            return 0
        bonus = self.inventory.defense_bonus if self.inventory is not None else 0
        return self.fighter.base_defense + bonus

    def move_to(self, pos: Position) -> None:
        self.x, self.y = pos

    def distance_to(self, pos: Position) -> float:
        return math.hypot(pos[0] - self.x, pos[1] - self.y)

    def chebyshev_to(self, pos: Position) -> int:
        return max(abs(pos[0] - self.x), abs(pos[1] - self.y))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "blocks": self.blocks,
            "fighter": self.fighter.to_dict() if self.fighter else None,
            "ai": self.ai.to_dict() if self.ai else None,
            "inventory": self.inventory.to_dict() if self.inventory is not None else None,
            "is_player": self.is_player,
            "level": self.level,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Entity":
        return Entity(
            id=int(data["id"]),
            name=str(data["name"]),
            x=int(data["x"]),
            y=int(data["y"]),
            blocks=bool(data.get("blocks", True)),
            fighter=Fighter.from_dict(data["fighter"]) if data.get("fighter") else None,
            ai=AI.from_dict(data["ai"]) if data.get("ai") else None,
            inventory=Inventory.from_dict(data["inventory"]) if data.get("inventory") else None,
            is_player=bool(data.get("is_player", False)),
            level=int(data.get("level", 1)),
        )


class EntityRegistry:
    """Owns every entity of the current game and hands out stable ids.

    Ids are never reused within a game, so ascending-id iteration is the
    creation order that the monster pass relies on.
    """

    def __init__(self) -> None:
        self._entities: Dict[int, Entity] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter([self._entities[i] for i in sorted(self._entities)])

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def add(self, entity: Entity) -> int:
        if entity.is_player and any(e.is_player for e in self._entities.values()):
            logger.error("Refusing to register a second player (%s)", entity.name)
            raise ContractViolation("The registry already holds a player")
        entity.id = self._next_id
        self._next_id += 1
        self._entities[entity.id] = entity
        return entity.id

    def get(self, entity_id: int) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def remove(self, entity_id: int) -> Entity:
        try:
            return self._entities.pop(entity_id)
        except KeyError:
            raise ContractViolation(f"No entity with id {entity_id}") from None

    @property
    def player(self) -> Entity:
        players = [e for e in self._entities.values() if e.is_player]
        if len(players) != 1:
            logger.error("Registry holds %d players", len(players))
            raise ContractViolation(f"Expected exactly one player, found {len(players)}")
        return players[0]

    def blocking_at(self, pos: Position) -> Optional[Entity]:
        for e in self:
            if e.blocks and e.pos == pos:
                return e
        return None

    def fighter_at(self, pos: Position) -> Optional[Entity]:
        for e in self:
            if e.alive and e.pos == pos:
                return e
        return None

    def blocked_positions(self, exclude: Optional[Entity] = None) -> Set[Position]:
        return {e.pos for e in self._entities.values() if e.blocks and e is not exclude}

    def living_ai(self) -> List[Entity]:
        return [e for e in self if e.ai is not None and e.alive]

    def monsters(self) -> List[Entity]:
        return [e for e in self if not e.is_player]

    def reap(self) -> List[Entity]:
        """Remove dead non-player fighters; returns them in id order."""
        dead = [e for e in self if not e.is_player and e.fighter is not None and not e.fighter.alive]
        for e in dead:
            del self._entities[e.id]
            logger.debug("Reaped %s (id=%d)", e.name, e.id)
        return dead

    def clear_non_player(self) -> None:
        for e in self.monsters():
            del self._entities[e.id]

    def to_dict(self) -> Dict[str, Any]:
        return {"next_id": self._next_id, "entities": [e.to_dict() for e in self]}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EntityRegistry":
        reg = EntityRegistry()
        for d in data.get("entities", []):
            e = Entity.from_dict(d)
            if e.id in reg._entities:
                raise ContractViolation(f"Duplicate entity id {e.id}")
            reg._entities[e.id] = e
        reg._next_id = max([int(data.get("next_id", 0))] + [i + 1 for i in reg._entities])
        return reg
