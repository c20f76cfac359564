from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Settings
from .intents import Attack, Direction, Intent, LevelUp, Move, Pickup, Stat, TakeStairs, UseItem, Wait
from .items import EffectKind
from .map.tiles import TileKind
from .pathfinding import find_path
from .persistence.manager import SaveManager
from .scheduler import InvalidIntent, TurnScheduler

logger = logging.getLogger(__name__)

LOW_HP_FRACTION = 0.35


def autopilot_intent(sched: TurnScheduler) -> Intent:
    """Pick a reasonable intent for the player without any input.

    Priorities: spend level-ups, drink a potion when low, fight adjacent
    monsters, pick things up, then head for the stairs down.
    """
    player = sched.player
    fighter = player.fighter

    if sched.level_up_pending:
        return LevelUp(Stat.CONSTITUTION)

    if fighter.hp < fighter.max_hp * LOW_HP_FRACTION:
        for i, item in enumerate(player.inventory):
            if item.effect is EffectKind.HEAL:
                return UseItem(i)

    for monster in sched.registry.living_ai():
        if player.chebyshev_to(monster.pos) == 1:
            return Attack(Direction.from_delta(monster.x - player.x, monster.y - player.y))

    if sched.grid.ground_items.at(player.pos) and not player.inventory.is_full:
        return Pickup()

    stairs = sched.grid.find(TileKind.STAIRS_DOWN)
    if stairs is None:
        return Wait()
    if stairs == player.pos:
        return TakeStairs()
    path = find_path(
        sched.grid,
        player.pos,
        stairs,
        sched.registry.blocked_positions(exclude=player),
        block_diagonal_squeeze=sched.settings.pathfinding.block_diagonal_squeeze,
    )
    if not path:
        return Wait()
    step = path[0]
    return Move(Direction.from_delta(step[0] - player.x, step[1] - player.y))


def run_headless(
    seed: Optional[int] = None,
    turns: int = 200,
    settings: Optional[Settings] = None,
    save_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """Play ``turns`` autopilot turns and return a JSON-friendly summary."""
    sched = TurnScheduler.new_game(settings, seed)
    played = 0
    rejected = 0
    while played < turns and not sched.game_over:
        result = sched.submit(autopilot_intent(sched))
        if isinstance(result, InvalidIntent):
            rejected += 1
            result = sched.submit(Wait())
        if not isinstance(result, InvalidIntent) and result.turn_consumed:
            played += 1

    if save_path is not None:
        save_path = Path(save_path)
        SaveManager(save_path.parent).save(sched, slot=save_path.stem)

    player = sched.player
    summary = {
        "seed": sched.rng.seed,
        "level": sched.level,
        "turn": sched.turn,
        "player_hp": player.fighter.hp,
        "player_max_hp": player.fighter.max_hp,
        "player_level": player.level,
        "game_over": sched.game_over,
        "rejected_intents": rejected,
        "messages": [m.text for m in sched.log.tail(10)],
    }
    logger.info("Headless run finished: %s", summary)
    return summary
