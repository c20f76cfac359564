from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple, Union

from . import ai as monster_ai
from .combat import resolve_attack, use_item
from .config import Settings
from .dungeon.generator import DungeonGenerator
from .dungeon.population import build_item, build_monster
from .entities import Behaviour, Entity, EntityRegistry, Fighter
from .errors import ContractViolation
from .fov import compute_visible, update_visibility
from .intents import Attack, Drop, Intent, LevelUp, Move, Pickup, Stat, TakeStairs, UseItem, Wait
from .items import EffectKind, Inventory, Item, ItemKind
from .map.grid import GridMap
from .map.tiles import TileKind
from .messages import Message, MessageLog, Severity
from .rng import GameRandom

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

WELCOME = "Welcome stranger! Prepare to perish in the Tombs of the Ancient Kings."


class SchedulerState(Enum):
    AWAITING_PLAYER_INTENT = "awaiting_player_intent"
    APPLYING_PLAYER_ACTION = "applying_player_action"
    RUNNING_MONSTER_TURNS = "running_monster_turns"
    RECOMPUTING_VISIBILITY = "recomputing_visibility"
    LEVEL_TRANSITION = "level_transition"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class InvalidIntent:
    """A rejected intent. Nothing was consumed or changed."""

    reason: str


@dataclass(frozen=True)
class TurnResult:
    turn: int
    level: int
    state: SchedulerState
    turn_consumed: bool
    game_over: bool
    messages: Tuple[Message, ...] = ()


@dataclass(frozen=True)
class EntityView:
    id: int
    name: str
    pos: Position
    hp: int
    max_hp: int
    is_player: bool


@dataclass(frozen=True)
class GameView:
    """Read-only snapshot for presentation code.

    ``grid`` is a copy of the live map; editing it does not affect the game.
    """

    level: int
    turn: int
    state: SchedulerState
    game_over: bool
    grid: GridMap
    entities: Tuple[EntityView, ...]
    visible: FrozenSet[Position]
    items_on_ground: Tuple[Tuple[Position, str], ...]
    inventory: Tuple[str, ...]
    player_level: int
    player_xp: int
    level_up_pending: bool


class TurnScheduler:
    """Drives one game: validates intents, runs monsters and keeps FOV current.

    A ``submit`` call runs to completion: player action, monster pass in
    ascending id order, then visibility. The ``GameRandom`` passed in is the
    only source of randomness, so a fixed master seed replays identically.
    """

    def __init__(
        self,
        settings: Settings,
        rng: GameRandom,
        grid: GridMap,
        registry: EntityRegistry,
        *,
        level: int = 1,
        turn: int = 0,
        log: Optional[MessageLog] = None,
        next_item_uid: int = 0,
    ) -> None:
        self.settings = settings
        self.rng = rng
        self.grid = grid
        self.registry = registry
        self.level = level
        self.turn = turn
        self.log = log or MessageLog()
        self._next_item_uid = next_item_uid
        self._generator = DungeonGenerator(settings)
        self._visible: Set[Position] = set()
        self._state = SchedulerState.AWAITING_PLAYER_INTENT
        # Validates the exactly-one-player invariant
        player = self.registry.player
        if player.alive:
            self._recompute_visibility()
        else:
            self._state = SchedulerState.GAME_OVER

    # Construction

    @classmethod
    def new_game(cls, settings: Optional[Settings] = None, seed: Optional[int] = None) -> "TurnScheduler":
        settings = settings or Settings()
        rng = GameRandom(seed)
        ps = settings.player
        player = Entity(
            name=ps.name,
            x=0,
            y=0,
            fighter=Fighter(max_hp=ps.max_hp, hp=ps.max_hp, base_power=ps.power, base_defense=ps.defense),
            inventory=Inventory(capacity=ps.inventory_capacity),
            is_player=True,
        )
        registry = EntityRegistry()
        registry.add(player)

        # Placeholder map until level 1 is generated below
        sched = cls(settings, rng, GridMap(settings.map.width, settings.map.height), registry)
        if ps.starting_dagger:
            dagger = build_item(ItemKind.DAGGER, sched._new_item_uid(), settings)
            player.inventory.add(dagger)
            player.inventory.equip(dagger)

        sched._enter_level(1, descending=True)
        sched._recompute_visibility()
        sched.log.add(WELCOME, Severity.WARNING)
        sched._state = SchedulerState.AWAITING_PLAYER_INTENT
        logger.info("New game started (seed=%d)", rng.seed)
        return sched

    # Read-only surface

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def game_over(self) -> bool:
        return self._state is SchedulerState.GAME_OVER

    @property
    def player(self) -> Entity:
        return self.registry.player

    @property
    def visible(self) -> FrozenSet[Position]:
        return frozenset(self._visible)

    @property
    def level_up_threshold(self) -> int:
        prog = self.settings.progression
        return prog.level_up_base + self.player.level * prog.level_up_factor

    @property
    def level_up_pending(self) -> bool:
        player = self.player
        return player.alive and player.fighter.xp >= self.level_up_threshold

    def read_messages(self) -> List[Message]:
        return self.log.read_new()

    def view(self) -> GameView:
        player = self.player
        entities = tuple(
            EntityView(
                id=e.id,
                name=e.name,
                pos=e.pos,
                hp=e.fighter.hp if e.fighter else 0,
                max_hp=e.fighter.max_hp if e.fighter else 0,
                is_player=e.is_player,
            )
            for e in self.registry
        )
        ground = tuple(
            (pos, item.name) for pos in self.grid.ground_items.positions() for item in self.grid.ground_items.at(pos)
        )
        return GameView(
            level=self.level,
            turn=self.turn,
            state=self._state,
            game_over=self.game_over,
            grid=copy.deepcopy(self.grid),
            entities=entities,
            visible=frozenset(self._visible),
            items_on_ground=ground,
            inventory=tuple(
                f"{it.name} (on {it.slot.value})" if it.equipped and it.slot else it.name
                for it in player.inventory
            ),
            player_level=player.level,
            player_xp=player.fighter.xp,
            level_up_pending=self.level_up_pending,
        )

    # Turn loop

    def submit(self, intent: Intent) -> Union[TurnResult, InvalidIntent]:
        if self.game_over:
            return InvalidIntent("game over")
        reason = self._validate(intent)
        if reason is not None:
            logger.warning("Rejected %s: %s", intent, reason)
            return InvalidIntent(reason)

        mark = len(self.log)
        if isinstance(intent, LevelUp):
            self._apply_level_up(intent.stat)
            return self._result(mark, consumed=False)

        pending_before = self.level_up_pending
        self._enter(SchedulerState.APPLYING_PLAYER_ACTION)
        changed_level = self._apply_player_action(intent)
        self._reap()

        if not changed_level:
            self._enter(SchedulerState.RUNNING_MONSTER_TURNS)
            self._run_monsters()
            self._reap()

        self._enter(SchedulerState.RECOMPUTING_VISIBILITY)
        self._recompute_visibility()
        self.turn += 1

        if self.level_up_pending and not pending_before:
            self.log.add("You feel ready to grow stronger. Choose a stat to raise.", Severity.GOOD)

        if not self.player.alive:
            self._enter(SchedulerState.GAME_OVER)
            logger.info("Game over on level %d at turn %d", self.level, self.turn)
        else:
            self._enter(SchedulerState.AWAITING_PLAYER_INTENT)
        return self._result(mark, consumed=True)

    def _result(self, mark: int, consumed: bool) -> TurnResult:
        return TurnResult(
            turn=self.turn,
            level=self.level,
            state=self._state,
            turn_consumed=consumed,
            game_over=self.game_over,
            messages=self.log.entries[mark:],
        )

    def _enter(self, state: SchedulerState) -> None:
        logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state

    # Validation: no mutation allowed in here

    def _validate(self, intent: Intent) -> Optional[str]:
        player = self.player
        inventory = player.inventory
        if isinstance(intent, Move):
            dest = intent.direction.apply(player.pos)
            if not self.grid.in_bounds(*dest):
                return "cannot leave the map"
            target = self.registry.fighter_at(dest)
            if target is not None and not target.is_player:
                return None
            if not self.grid.is_walkable(*dest):
                return "a wall blocks the way"
            if not self.grid.can_step(player.pos, dest, self.settings.pathfinding.block_diagonal_squeeze):
                return "cannot squeeze between walls"
            if self.registry.blocking_at(dest) is not None:
                return "the way is occupied"
            return None
        if isinstance(intent, Attack):
            dest = intent.direction.apply(player.pos)
            target = self.registry.fighter_at(dest) if self.grid.in_bounds(*dest) else None
            if target is None or target.is_player:
                return "nothing to attack there"
            return None
        if isinstance(intent, (UseItem, Drop)):
            if not 0 <= intent.index < len(inventory):
                return f"no item at index {intent.index}"
            return None
        if isinstance(intent, Pickup):
            if not self.grid.ground_items.at(player.pos):
                return "nothing to pick up here"
            if inventory.is_full:
                return "inventory is full"
            return None
        if isinstance(intent, TakeStairs):
            kind = self.grid.tile(*player.pos).kind
            if not kind.is_stairs:
                return "there are no stairs here"
            if kind is TileKind.STAIRS_UP and self.level <= 1:
                return "there is no level above"
            return None
        if isinstance(intent, LevelUp):
            if not self.level_up_pending:
                return "no level-up pending"
            return None
        if isinstance(intent, Wait):
            return None
        return f"unknown intent {intent!r}"

    # Player actions

    def _apply_player_action(self, intent: Intent) -> bool:
        """Apply a validated intent. Returns True when the level changed."""
        player = self.player
        if isinstance(intent, (Move, Attack)):
            dest = intent.direction.apply(player.pos)
            target = self.registry.fighter_at(dest)
            if target is not None and not target.is_player:
                self._attack(player, target)
            else:
                tile = self.grid.tile(*dest)
                if tile.kind is TileKind.DOOR and not tile.door_open:
                    tile.door_open = True
                    self.log.add("You open the door.")
                else:
                    player.move_to(dest)
        elif isinstance(intent, UseItem):
            self._use_item(player.inventory.get(intent.index))
        elif isinstance(intent, Drop):
            item = player.inventory.pop(intent.index)
            self.grid.ground_items.place(player.pos, item)
            self.log.add(f"You dropped a {item.name}.")
        elif isinstance(intent, Pickup):
            self._pickup()
        elif isinstance(intent, TakeStairs):
            self._take_stairs()
            return True
        return False

    def _attack(self, attacker: Entity, defender: Entity) -> None:
        outcome = resolve_attack(
            attacker, defender, rng=self.rng, jitter=self.settings.combat.damage_jitter
        )
        self.log.extend(outcome.messages)

    def _nearest_visible_monster(self, max_range: Optional[float]) -> Optional[Entity]:
        player = self.player
        best: Optional[Entity] = None
        best_dist = float("inf")
        for e in self.registry.living_ai():
            if e.pos not in self._visible:
                continue
            dist = player.distance_to(e.pos)
            if max_range is not None and dist > max_range:
                continue
            if dist < best_dist:
                best, best_dist = e, dist
        return best

    def _use_item(self, item: Item) -> None:
        target = None
        if item.effect in (EffectKind.CONFUSE_TARGET, EffectKind.LIGHTNING):
            target = self._nearest_visible_monster(item.reach)
        elif item.effect is EffectKind.FIREBALL:
            target = self._nearest_visible_monster(None)
        result = use_item(self.player, item, target, bystanders=list(self.registry))
        self.log.extend(result.messages)

    def _pickup(self) -> None:
        player = self.player
        item = self.grid.ground_items.take(player.pos)
        player.inventory.add(item)
        self.log.add(f"You picked up a {item.name}!", Severity.GOOD)
        if item.slot is not None and player.inventory.equipped_in(item.slot) is None:
            player.inventory.equip(item)
            self.log.add(f"Equipped {item.name} on {item.slot.value}.", Severity.GOOD)

    def _take_stairs(self) -> None:
        player = self.player
        kind = self.grid.tile(*player.pos).kind
        if kind is TileKind.STAIRS_DOWN:
            healed = player.fighter.heal(player.fighter.max_hp // 2)
            self.log.add("You take a moment to rest and recover your strength.", Severity.GOOD)
            logger.debug("Rested for %d hp", healed)
            self._enter_level(self.level + 1, descending=True)
            self.log.add(
                "After a rare moment of peace, you descend deeper into the heart of the dungeon.",
                Severity.WARNING,
            )
        else:
            self._enter_level(self.level - 1, descending=False)
            self.log.add(f"You climb back up to level {self.level}.")

    def _enter_level(self, level: int, *, descending: bool) -> None:
        if level < 1:
            raise ContractViolation(f"Cannot enter dungeon level {level}")
        self._enter(SchedulerState.LEVEL_TRANSITION)
        self.registry.clear_non_player()
        seed = self.rng.derive_seed("level", level)
        grid, spawns = self._generator.generate(level, self.settings.map.width, self.settings.map.height, seed)

        self.grid = grid
        self.level = level
        arrival = spawns.player if descending else spawns.stairs_down
        self.player.move_to(arrival)

        for m in spawns.monsters:
            if m.pos == arrival:
                continue
            self.registry.add(build_monster(m.kind, m.pos))
        for it in spawns.items:
            grid.ground_items.place(it.pos, build_item(it.kind, self._new_item_uid(), self.settings))
        logger.info(
            "Entered level %d (%s) at %s: %d monsters, %d items",
            level, "down" if descending else "up", arrival, len(self.registry) - 1, len(grid.ground_items),
        )

    def _new_item_uid(self) -> int:
        uid = self._next_item_uid
        self._next_item_uid += 1
        return uid

    def _apply_level_up(self, stat: Stat) -> None:
        player = self.player
        fighter = player.fighter
        prog = self.settings.progression
        fighter.xp -= self.level_up_threshold
        player.level += 1
        if stat is Stat.CONSTITUTION:
            fighter.max_hp += prog.constitution_hp
            fighter.heal(prog.constitution_hp)
        elif stat is Stat.STRENGTH:
            fighter.base_power += prog.strength_power
        else:
            fighter.base_defense += prog.agility_defense
        self.log.add(f"Your battle skills grow stronger! You reached level {player.level}!", Severity.GOOD)
        logger.info("Player reached level %d (%s)", player.level, stat.value)

    # Monsters

    def _run_monsters(self) -> None:
        player = self.player
        seen = compute_visible(self.grid, player.pos, self.settings.fov.torch_radius)
        squeeze = self.settings.pathfinding.block_diagonal_squeeze
        for monster in self.registry.living_ai():
            if not monster.alive:
                continue
            was_confused = monster.ai.behaviour is Behaviour.CONFUSED
            decision = monster_ai.decide(
                monster,
                player,
                self.grid,
                self.registry,
                seen,
                self.rng,
                block_diagonal_squeeze=squeeze,
                requires_visibility=self.settings.ai.hostile_requires_visibility,
            )
            if isinstance(decision, monster_ai.AttackTarget):
                target = self.registry.get(decision.target_id)
                if target is not None and target.alive:
                    self._attack(monster, target)
            elif isinstance(decision, monster_ai.StepTo):
                tile = self.grid.tile(*decision.pos)
                if tile.kind is TileKind.DOOR and not tile.door_open:
                    tile.door_open = True
                    logger.debug("%s (id=%d) opened the door at %s", monster.name, monster.id, decision.pos)
                else:
                    monster.move_to(decision.pos)
            if was_confused and monster.ai.tick_confusion():
                self.log.add(f"The {monster.name} is no longer confused!", Severity.WARNING)

    def _reap(self) -> None:
        for dead in self.registry.reap():
            logger.debug("Removed %s (id=%d) from the level", dead.name, dead.id)

    def _recompute_visibility(self) -> None:
        self._visible = update_visibility(self.grid, self.player.pos, self.settings.fov.torch_radius)

    # Persistence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.model_dump(),
            "rng": self.rng.get_state(),
            "level": self.level,
            "turn": self.turn,
            "next_item_uid": self._next_item_uid,
            "grid": self.grid.to_dict(),
            "registry": self.registry.to_dict(),
            "log": self.log.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TurnScheduler":
        return cls(
            Settings.from_mapping(data["settings"]),
            GameRandom.from_state(data["rng"]),
            GridMap.from_dict(data["grid"]),
            EntityRegistry.from_dict(data["registry"]),
            level=int(data["level"]),
            turn=int(data["turn"]),
            log=MessageLog.from_dict(data["log"]),
            next_item_uid=int(data.get("next_item_uid", 0)),
        )


__all__ = [
    "TurnScheduler",
    "SchedulerState",
    "TurnResult",
    "InvalidIntent",
    "GameView",
    "EntityView",
]
