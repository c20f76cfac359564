from tombs.ai import AttackTarget, Hold, StepTo, decide
from tombs.dungeon.population import MonsterKind, build_monster
from tombs.entities import AI, Behaviour, EntityRegistry
from tombs.fov import compute_visible
from tombs.map.grid import GridMap
from tombs.rng import GameRandom

ROOM = [
    "############",
    "#..........#",
    "#..........#",
    "#..........#",
    "############",
]


def setup(player_factory, player_pos, monster_pos, rows=ROOM):
    grid = GridMap.from_ascii(rows)
    registry = EntityRegistry()
    player = player_factory(pos=player_pos)
    registry.add(player)
    orc = build_monster(MonsterKind.ORC, monster_pos)
    registry.add(orc)
    visible = compute_visible(grid, player.pos, 10)
    return grid, registry, player, orc, visible


def test_adjacent_hostile_attacks(player_factory):
    grid, registry, player, orc, visible = setup(player_factory, (2, 2), (3, 3))
    decision = decide(orc, player, grid, registry, visible, GameRandom(1))
    assert decision == AttackTarget(player.id)


def test_distant_hostile_steps_along_path(player_factory):
    grid, registry, player, orc, visible = setup(player_factory, (1, 2), (8, 2))
    decision = decide(orc, player, grid, registry, visible, GameRandom(1))
    assert isinstance(decision, StepTo)
    assert orc.chebyshev_to(decision.pos) == 1
    assert player.chebyshev_to(decision.pos) == 6


def test_unseen_hostile_holds(player_factory):
    rows = [
        "############",
        "#....#.....#",
        "#....#.....#",
        "#....#.....#",
        "############",
    ]
    grid, registry, player, orc, visible = setup(player_factory, (1, 2), (8, 2), rows)
    assert orc.pos not in visible
    assert isinstance(decide(orc, player, grid, registry, visible, GameRandom(1)), Hold)
    # Acting unseen does not help when the wall leaves no path
    assert isinstance(
        decide(orc, player, grid, registry, visible, GameRandom(1), requires_visibility=False), Hold
    )


def test_idle_monster_holds(player_factory):
    grid, registry, player, orc, visible = setup(player_factory, (2, 2), (3, 2))
    orc.ai = AI(Behaviour.IDLE)
    assert isinstance(decide(orc, player, grid, registry, visible, GameRandom(1)), Hold)


def test_hostile_holds_when_player_is_dead(player_factory):
    grid, registry, player, orc, visible = setup(player_factory, (2, 2), (3, 2))
    player.fighter.hp = 0
    assert isinstance(decide(orc, player, grid, registry, visible, GameRandom(1)), Hold)


def test_confused_monster_wanders_at_most_one_tile(player_factory):
    grid, registry, player, orc, visible = setup(player_factory, (1, 1), (6, 2))
    orc.ai.confuse(3)
    rng = GameRandom(4)
    for _ in range(20):
        decision = decide(orc, player, grid, registry, visible, rng)
        if isinstance(decision, StepTo):
            assert orc.chebyshev_to(decision.pos) == 1
            assert grid.is_walkable(*decision.pos)
        else:
            assert isinstance(decision, Hold)


def test_confused_decisions_replay_with_same_seed(player_factory):
    grid, registry, player, orc, visible = setup(player_factory, (1, 1), (6, 2))
    orc.ai.confuse(3)
    a = decide(orc, player, grid, registry, visible, GameRandom(9))
    b = decide(orc, player, grid, registry, visible, GameRandom(9))
    assert a == b


def test_confusion_counts_down_and_reverts():
    ai = AI(Behaviour.HOSTILE)
    ai.confuse(2)
    ai.confuse(2)
    assert ai.previous is Behaviour.HOSTILE
    assert ai.tick_confusion() is False
    assert ai.tick_confusion() is True
    assert ai.behaviour is Behaviour.HOSTILE
    assert ai.previous is None
    assert ai.tick_confusion() is False
