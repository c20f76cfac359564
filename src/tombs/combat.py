from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .entities import Entity
from .errors import ContractViolation
from .items import EffectKind, Item
from .messages import Message, Severity
from .rng import GameRandom

logger = logging.getLogger(__name__)


class OutcomeKind(Enum):
    HIT = "hit"
    # Never produced by the deterministic model; kept for presentation code
    MISS = "miss"
    KILL = "kill"


@dataclass(frozen=True)
class AttackOutcome:
    """Result of one melee attack."""

    attacker_id: int
    defender_id: int
    kind: OutcomeKind
    damage: int
    hp_before: int
    hp_after: int
    xp_awarded: int = 0
    messages: Tuple[Message, ...] = ()


@dataclass
class ItemUseResult:
    item: Item
    consumed: bool = False
    cancelled: bool = False
    messages: List[Message] = field(default_factory=list)
    killed: List[Entity] = field(default_factory=list)


def _require_fighter(entity: Entity, role: str) -> None:
    if entity.fighter is None:
        logger.error("%s %s has no fighter component", role, entity.name)
        raise ContractViolation(f"{role} {entity.name} cannot fight")
    if not entity.fighter.alive:
        logger.error("%s %s is already dead", role, entity.name)
        raise ContractViolation(f"{role} {entity.name} is dead")


def death_messages(victim: Entity, killer: Optional[Entity]) -> Tuple[List[Message], int]:
    """Messages for ``victim`` dropping to 0 hp and the xp granted to ``killer``."""
    if victim.is_player:
        return [Message("You died!", Severity.DANGER)], 0
    xp = victim.fighter.xp if victim.fighter else 0
    if killer is not None and killer.is_player and killer is not victim and killer.fighter is not None:
        killer.fighter.xp += xp
        return [Message(f"{victim.name} is dead! You gain {xp} experience points.", Severity.GOOD)], xp
    return [Message(f"{victim.name} is dead!", Severity.GOOD)], 0


def compute_damage(power: int, defense: int, rng: Optional[GameRandom] = None, jitter: int = 0) -> int:
    damage = max(0, power - defense)
    if jitter > 0 and rng is not None:
        damage = max(0, damage + rng.randint(-jitter, jitter))
    return damage


def resolve_attack(
    attacker: Entity,
    defender: Entity,
    *,
    rng: Optional[GameRandom] = None,
    jitter: int = 0,
) -> AttackOutcome:
    """Resolve a melee attack and apply its damage to ``defender``.

    Damage is ``max(0, power - defense)`` using equipment-adjusted stats. With a
    positive ``jitter`` and an ``rng`` a uniform spread in ``[-jitter, jitter]``
    is added, still floored at zero. The outcome is KILL exactly when the
    defender ends at 0 hp.
    """
    _require_fighter(attacker, "Attacker")
    _require_fighter(defender, "Defender")

    damage = compute_damage(attacker.power, defender.defense, rng, jitter)
    before = defender.fighter.hp
    applied = defender.fighter.take_damage(damage)
    after = defender.fighter.hp

    messages: List[Message] = []
    severity = Severity.DANGER if defender.is_player else Severity.INFO
    if applied > 0:
        messages.append(Message(f"{attacker.name} attacks {defender.name} for {applied} hit points.", severity))
    else:
        messages.append(Message(f"{attacker.name} attacks {defender.name} but it has no effect!", severity))

    kind = OutcomeKind.HIT
    xp = 0
    if after == 0:
        kind = OutcomeKind.KILL
        extra, xp = death_messages(defender, attacker)
        messages.extend(extra)

    logger.debug(
        "%s -> %s: %s dmg=%d hp %d->%d", attacker.name, defender.name, kind.value, applied, before, after
    )
    return AttackOutcome(
        attacker_id=attacker.id,
        defender_id=defender.id,
        kind=kind,
        damage=applied,
        hp_before=before,
        hp_after=after,
        xp_awarded=xp,
        messages=tuple(messages),
    )


def _apply_damage(user: Entity, victim: Entity, amount: int, result: ItemUseResult) -> None:
    victim.fighter.take_damage(amount)
    if not victim.fighter.alive:
        extra, _ = death_messages(victim, user)
        result.messages.extend(extra)
        result.killed.append(victim)


def use_item(
    user: Entity,
    item: Item,
    target: Optional[Entity] = None,
    *,
    bystanders: Iterable[Entity] = (),
) -> ItemUseResult:
    """Apply ``item`` from ``user``'s inventory.

    Single-use items are removed from the inventory when consumed. Potions at
    full health, and targeted items with no (or an out-of-range) target, are
    cancelled and kept.
    ``bystanders`` lists the entities a fireball may catch besides the target.
    """
    if user.inventory is None or item not in user.inventory:
        logger.error("%s tried to use %s which it does not carry", user.name, item.name)
        raise ContractViolation(f"{item.name} is not in {user.name}'s inventory")
    _require_fighter(user, "User")
    if target is not None and item.effect is not EffectKind.HEAL:
        _require_fighter(target, "Target")

    result = ItemUseResult(item=item)
    effect = item.effect

    if effect is EffectKind.HEAL:
        who = target or user
        _require_fighter(who, "Target")
        if who.fighter.hp >= who.fighter.max_hp:
            text = "You are already at full health." if who is user else f"{who.name} is already at full health."
            result.messages.append(Message(text, Severity.WARNING))
            result.cancelled = True
        else:
            gained = who.fighter.heal(item.amount)
            if who is user:
                result.messages.append(Message("Your wounds start to feel better!", Severity.GOOD))
            else:
                result.messages.append(Message(f"{who.name} recovers {gained} hit points.", Severity.INFO))
            result.consumed = True

    elif effect is EffectKind.CONFUSE_TARGET:
        if target is None or target.ai is None or user.distance_to(target.pos) > item.reach:
            result.messages.append(Message("No enemy is close enough to confuse.", Severity.WARNING))
            result.cancelled = True
        else:
            target.ai.confuse(item.amount)
            result.messages.append(
                Message(f"The eyes of the {target.name} look vacant, as it starts to stumble around!", Severity.GOOD)
            )
            result.consumed = True

    elif effect is EffectKind.LIGHTNING:
        if target is None or user.distance_to(target.pos) > item.reach:
            result.messages.append(Message("No enemy is close enough to strike.", Severity.WARNING))
            result.cancelled = True
        else:
            result.messages.append(
                Message(
                    f"A lightning bolt strikes the {target.name} with a loud thunder! "
                    f"The damage is {item.amount} hit points.",
                    Severity.GOOD,
                )
            )
            _apply_damage(user, target, item.amount, result)
            result.consumed = True

    elif effect is EffectKind.FIREBALL:
        if target is None:
            result.messages.append(Message("There is no target for the fireball.", Severity.WARNING))
            result.cancelled = True
        else:
            result.messages.append(
                Message(f"The fireball explodes, burning everything within {item.reach} tiles!", Severity.GOOD)
            )
            caught: List[Entity] = []
            for e in list(bystanders) + [target, user]:
                if e.alive and all(e is not c for c in caught) and e.distance_to(target.pos) <= item.reach:
                    caught.append(e)
            for e in sorted(caught, key=lambda c: c.id):
                result.messages.append(Message(f"The {e.name} gets burned for {item.amount} hit points.", Severity.INFO))
                _apply_damage(user, e, item.amount, result)
            result.consumed = True

    else:
        slot = item.slot.value if item.slot else "?"
        if item.equipped:
            user.inventory.unequip(item)
            result.messages.append(Message(f"Dequipped {item.name} from {slot}.", Severity.INFO))
        else:
            previous = user.inventory.equip(item)
            if previous is not None:
                result.messages.append(Message(f"Dequipped {previous.name} from {slot}.", Severity.INFO))
            result.messages.append(Message(f"Equipped {item.name} on {slot}.", Severity.GOOD))

    if result.consumed and effect.single_use:
        user.inventory.remove(item)
    logger.debug(
        "%s used %s: consumed=%s cancelled=%s killed=%d",
        user.name, item.name, result.consumed, result.cancelled, len(result.killed),
    )
    return result
