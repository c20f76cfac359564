from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Tuple, Union

from .entities import Behaviour, Entity, EntityRegistry
from .map.grid import GridMap
from .pathfinding import BLOCK_DIAGONAL_SQUEEZE, find_path
from .rng import GameRandom

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


@dataclass(frozen=True)
class Hold:
    reason: str = ""


@dataclass(frozen=True)
class StepTo:
    pos: Position


@dataclass(frozen=True)
class AttackTarget:
    target_id: int


Decision = Union[Hold, StepTo, AttackTarget]


def _confused_step(monster: Entity, grid: GridMap, registry: EntityRegistry, rng: GameRandom,
                   block_diagonal_squeeze: bool) -> Decision:
    # Both axes are always drawn so the generator advances the same way every turn
    dx = rng.randint(-1, 1)
    dy = rng.randint(-1, 1)
    if dx == 0 and dy == 0:
        return Hold("stumbles in place")
    dest = (monster.x + dx, monster.y + dy)
    if not grid.can_step(monster.pos, dest, block_diagonal_squeeze):
        return Hold("stumbles into a wall")
    if registry.blocking_at(dest) is not None:
        return Hold("stumbles into someone")
    return StepTo(dest)


def decide(
    monster: Entity,
    player: Entity,
    grid: GridMap,
    registry: EntityRegistry,
    visible: AbstractSet[Position],
    rng: GameRandom,
    *,
    block_diagonal_squeeze: bool = BLOCK_DIAGONAL_SQUEEZE,
    requires_visibility: bool = True,
) -> Decision:
    """Choose what ``monster`` does this turn. Does not mutate anything but ``rng``.

    Hostile monsters act only when they stand inside the player's field of
    view (FOV is symmetric, so that is also "the monster sees the player").
    They attack when adjacent and otherwise take the first step of an A*
    path that routes around other blocking entities.
    """
    ai = monster.ai
    if ai is None or not monster.alive:
        return Hold("inert")

    if ai.behaviour is Behaviour.CONFUSED:
        decision = _confused_step(monster, grid, registry, rng, block_diagonal_squeeze)
    elif ai.behaviour is Behaviour.IDLE:
        decision = Hold("idle")
    elif not player.alive:
        decision = Hold("no prey")
    elif requires_visibility and monster.pos not in visible:
        decision = Hold("unseen")
    elif monster.chebyshev_to(player.pos) <= 1:
        decision = AttackTarget(player.id)
    else:
        path = find_path(
            grid,
            monster.pos,
            player.pos,
            registry.blocked_positions(exclude=monster),
            block_diagonal_squeeze=block_diagonal_squeeze,
        )
        decision = StepTo(path[0]) if path else Hold("no path")

    logger.debug("%s (id=%d) at %s -> %s", monster.name, monster.id, monster.pos, decision)
    return decision


__all__ = ["decide", "Hold", "StepTo", "AttackTarget", "Decision"]
