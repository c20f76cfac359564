from tombs.app import autopilot_intent
from tombs.dungeon.population import build_item
from tombs.intents import Attack, Direction, Drop, LevelUp, Move, Pickup, Stat, TakeStairs, UseItem, Wait
from tombs.items import ItemKind
from tombs.map.tiles import TileKind
from tombs.scheduler import WELCOME, InvalidIntent, SchedulerState, TurnResult, TurnScheduler

CORRIDOR = [
    "#######",
    "#.@o..#",
    "#######",
]

ROOM = [
    "############",
    "#..........#",
    "#.@........#",
    "#..........#",
    "############",
]


def texts(result):
    return [m.text for m in result.messages]


def test_new_game_starts_on_level_one(settings):
    sched = TurnScheduler.new_game(settings, seed=42)
    view = sched.view()
    assert view.level == 1 and view.turn == 0
    assert view.state is SchedulerState.AWAITING_PLAYER_INTENT
    assert not view.game_over
    assert sched.grid.is_walkable(*sched.player.pos)
    assert sched.player.pos in view.visible
    assert view.inventory == ("Dagger (on left hand)",)
    assert sched.player.power == 4
    assert [m.text for m in sched.read_messages()] == [WELCOME]
    assert sched.read_messages() == []


def test_out_of_range_item_use_changes_nothing():
    sched = TurnScheduler.new_game(seed=3)
    sched.read_messages()
    before = sched.to_dict()

    result = sched.submit(UseItem(5))
    assert isinstance(result, InvalidIntent)
    assert "index 5" in result.reason
    assert sched.to_dict() == before
    assert sched.read_messages() == []
    assert sched.state is SchedulerState.AWAITING_PLAYER_INTENT


def test_moving_into_a_monster_attacks_it_and_it_strikes_back(build_scheduler):
    sched = build_scheduler(CORRIDOR)
    result = sched.submit(Move(Direction.E))
    assert isinstance(result, TurnResult) and result.turn_consumed
    assert texts(result) == [
        "Player attacks Orc for 2 hit points.",
        "Orc attacks Player for 3 hit points.",
    ]
    assert sched.player.pos == (2, 1)
    assert sched.player.fighter.hp == 97
    assert sched.turn == 1


def test_killed_monsters_are_reaped_and_award_xp(build_scheduler):
    sched = build_scheduler(CORRIDOR)
    orc = sched.registry.monsters()[0]
    orc.fighter.hp = 2
    result = sched.submit(Attack(Direction.E))
    assert "Orc is dead! You gain 35 experience points." in texts(result)
    assert orc.id not in sched.registry
    assert sched.player.fighter.xp == 35
    assert [e.is_player for e in sched.view().entities] == [True]


def test_attack_with_nobody_there_is_rejected(build_scheduler):
    sched = build_scheduler(CORRIDOR)
    assert isinstance(sched.submit(Attack(Direction.W)), InvalidIntent)
    assert sched.turn == 0


def test_walls_and_map_edges_reject_moves(build_scheduler):
    sched = build_scheduler(CORRIDOR)
    assert isinstance(sched.submit(Move(Direction.N)), InvalidIntent)
    assert isinstance(sched.submit(Move(Direction.SW)), InvalidIntent)
    assert sched.player.pos == (2, 1)
    assert len(sched.log) == 0


def test_player_death_ends_the_game(build_scheduler):
    sched = build_scheduler(["#####", "#@T.#", "#####"], player_hp=1)
    result = sched.submit(Wait())
    assert result.game_over
    assert "You died!" in texts(result)
    assert sched.state is SchedulerState.GAME_OVER
    assert sched.player.fighter.hp == 0
    assert sched.submit(Wait()) == InvalidIntent("game over")


def test_walking_into_a_closed_door_opens_it(build_scheduler):
    sched = build_scheduler(["######", "#@+..#", "######"])
    result = sched.submit(Move(Direction.E))
    assert result.turn_consumed
    assert sched.player.pos == (1, 1)
    assert sched.grid.tile(2, 1).door_open
    sched.submit(Move(Direction.E))
    assert sched.player.pos == (2, 1)


def test_pickup_auto_equips_into_free_slot(build_scheduler, settings):
    sched = build_scheduler(ROOM)
    sched.grid.ground_items.place(sched.player.pos, build_item(ItemKind.SWORD, 50, settings))
    result = sched.submit(Pickup())
    assert texts(result) == ["You picked up a Sword!", "Equipped Sword on right hand."]
    assert sched.player.power == 5
    assert isinstance(sched.submit(Pickup()), InvalidIntent)


def test_pickup_with_full_inventory_is_rejected(build_scheduler, settings):
    sched = build_scheduler(ROOM)
    for uid in range(26):
        sched.player.inventory.add(build_item(ItemKind.HEALING_POTION, uid, settings))
    sched.grid.ground_items.place(sched.player.pos, build_item(ItemKind.SWORD, 99, settings))
    result = sched.submit(Pickup())
    assert result == InvalidIntent("inventory is full")
    assert len(sched.grid.ground_items) == 1


def test_drop_puts_item_on_the_floor(build_scheduler, settings):
    sched = build_scheduler(ROOM)
    sched.player.inventory.add(build_item(ItemKind.HEALING_POTION, 1, settings))
    sched.submit(Drop(0))
    assert len(sched.player.inventory) == 0
    assert [i.name for i in sched.grid.ground_items.at(sched.player.pos)] == ["Healing Potion"]
    assert sched.view().items_on_ground == ((sched.player.pos, "Healing Potion"),)


def test_lightning_scroll_targets_nearest_visible_monster(build_scheduler, settings):
    rows = list(ROOM)
    rows[2] = "#.@..o....T#"
    sched = build_scheduler(rows)
    sched.player.inventory.add(build_item(ItemKind.LIGHTNING_SCROLL, 1, settings))
    result = sched.submit(UseItem(0))
    assert any(t.startswith("A lightning bolt strikes the Orc") for t in texts(result))
    assert [m.name for m in sched.registry.monsters()] == ["Troll"]
    assert len(sched.player.inventory) == 0


def test_scroll_without_target_is_kept_but_costs_the_turn(build_scheduler, settings):
    sched = build_scheduler(ROOM)
    sched.player.inventory.add(build_item(ItemKind.CONFUSION_SCROLL, 1, settings))
    result = sched.submit(UseItem(0))
    assert result.turn_consumed and sched.turn == 1
    assert len(sched.player.inventory) == 1


def test_visible_monster_approaches_and_hidden_one_waits(build_scheduler):
    rows = [
        "##############",
        "#@......o##..#",
        "#.......###.T#",
        "##############",
    ]
    sched = build_scheduler(rows)
    orc, troll = sched.registry.monsters()
    sched.submit(Wait())
    assert orc.pos in {(7, 1), (7, 2)}
    assert troll.pos == (12, 2)


def test_confusion_wears_off_with_a_message(build_scheduler):
    sched = build_scheduler(ROOM[:2] + ["#.@.....o..#"] + ROOM[3:])
    orc = sched.registry.monsters()[0]
    orc.ai.confuse(1)
    result = sched.submit(Wait())
    assert "The Orc is no longer confused!" in texts(result)


def test_level_up_is_a_free_action(build_scheduler):
    sched = build_scheduler(ROOM)
    assert isinstance(sched.submit(LevelUp(Stat.STRENGTH)), InvalidIntent)

    sched.player.fighter.xp = sched.level_up_threshold
    assert sched.view().level_up_pending
    result = sched.submit(LevelUp(Stat.STRENGTH))
    assert not result.turn_consumed
    assert sched.turn == 0
    assert sched.player.level == 2
    assert sched.player.fighter.base_power == 3
    assert sched.player.fighter.xp == 0
    assert sched.level_up_threshold == 500

    sched.player.fighter.xp = 500
    sched.player.fighter.hp = 50
    sched.submit(LevelUp(Stat.CONSTITUTION))
    assert sched.player.fighter.max_hp == 120
    assert sched.player.fighter.hp == 70


def test_stairs_descend_rest_and_climb_back(settings):
    sched = TurnScheduler.new_game(settings, seed=11)
    level_one = sched.grid.snapshot()

    old_ids = {e.id for e in sched.registry.monsters()}
    sched.player.move_to(sched.grid.find(TileKind.STAIRS_DOWN))
    sched.player.fighter.hp = 10
    result = sched.submit(TakeStairs())

    assert result.level == 2 and sched.level == 2
    assert "You take a moment to rest and recover your strength." in texts(result)
    assert sched.player.fighter.hp == 60
    assert sched.grid.tile(*sched.player.pos).kind.is_stairs
    assert not old_ids & {e.id for e in sched.registry.monsters()}
    assert sched.player.pos in sched.visible

    if sched.grid.tile(*sched.player.pos).kind is TileKind.STAIRS_UP:
        sched.submit(TakeStairs())
        assert sched.level == 1
        assert sched.grid.snapshot() == level_one
        assert sched.grid.tile(*sched.player.pos).kind is TileKind.STAIRS_DOWN


def test_same_seed_same_intents_same_game(settings):
    def play(seed):
        sched = TurnScheduler.new_game(settings, seed=seed)
        for _ in range(40):
            if sched.game_over:
                break
            result = sched.submit(autopilot_intent(sched))
            if isinstance(result, InvalidIntent):
                sched.submit(Wait())
        return sched

    a, b = play(7), play(7)
    assert a.to_dict() == b.to_dict()
    for e in a.registry:
        assert a.grid.is_walkable(*e.pos)
        assert 0 <= e.fighter.hp <= e.fighter.max_hp


def test_up_stairs_on_the_first_level_are_rejected(build_scheduler):
    sched = build_scheduler(["#####", "#@<.#", "#####"])
    sched.player.move_to((2, 1))
    result = sched.submit(TakeStairs())
    assert result == InvalidIntent("there is no level above")
    assert sched.level == 1 and sched.turn == 0
    assert sched.state is SchedulerState.AWAITING_PLAYER_INTENT


def test_view_grid_is_a_copy(build_scheduler):
    sched = build_scheduler(ROOM)
    view = sched.view()
    view.grid.set_kind(3, 3, TileKind.WALL)
    assert sched.grid.is_walkable(3, 3)
    assert view.grid.tile(*sched.player.pos).visible


def test_monsters_open_closed_doors_before_passing(build_scheduler, settings):
    cfg = settings.model_copy(update={"ai": settings.ai.model_copy(update={"hostile_requires_visibility": False})})
    sched = build_scheduler(["#########", "#@..+o..#", "#########"], cfg=cfg)
    orc = sched.registry.monsters()[0]

    sched.submit(Wait())
    assert sched.grid.tile(4, 1).door_open
    assert orc.pos == (5, 1)

    sched.submit(Wait())
    assert orc.pos == (4, 1)
