"""Tests for players and enemies."""

from unittest.mock import Mock

from src.core.data.data_structures import Vector2
from src.core.data.game_enums import EntityKind, PointsName
from src.core.events.events import EventType
from src.game.entities.entity import EnemyEntity, PlayerEntity
from src.game.entities.player_record import PlayerRecord
from src.game.world import World

EXPERIENCE = PointsName.EXPERIENCE


class TestPlayerCreation:

    def test_defaults_for_new_record(self, world, catalog):
        record = PlayerRecord("dora")
        player = PlayerEntity(world, record)
        assert player.kind == EntityKind.PLAYER
        assert record.level == 1
        assert record.species == catalog.species_list[0].serial_integer
        assert record.health == player.get_maximum_health() == 5
        assert record.experience == 0
        assert record.gold == 0
        assert player.pos == Vector2(0, 0)
        assert world.get_player_entity("dora") is player
        assert world.get_occupant(Vector2(0, 0)) is player

    def test_species_from_record(self, world):
        player = PlayerEntity(world, PlayerRecord("eve", species=2))
        assert player.species.name == "mushroom"

    def test_points_write_through_to_record(self, alice):
        alice.points[PointsName.GOLD].offset_value(30)
        assert alice.record.gold == 30
        assert alice.record.to_fields()["gold"] == 30

    def test_remove(self, world, alice):
        alice.remove()
        assert world.get_player_entity("alice") is None
        assert alice.id not in world.entities
        assert world.get_occupant(alice.pos) is None

    def test_to_json(self, alice):
        data = alice.to_json()
        assert data["username"] == "alice"
        assert data["level"] == 5
        assert data["points"]["health"]["value"] == 25
        assert data["pos"] == {"x": 0, "y": 0}

    def test_points_text(self, alice):
        assert alice.get_points_text() == "25 HP, 0 EP, 5 DP, 0 XP, 0 GP"


class TestLearning:

    def test_learn_problems_in_order(self, alice, catalog, punch):
        kick = catalog.get_action(5)
        body_swap = catalog.get_action(19)
        assert alice.get_learn_problem(punch).reason == "This action does not need to be learned."
        assert alice.get_learn_problem(body_swap).reason == "Your level is not high enough to learn this action."
        assert alice.get_learn_problem(kick).reason == "You do not have enough XP to learn this action."

        alice.points[EXPERIENCE].set_value(100)
        assert alice.get_learn_problem(kick).is_valid
        assert alice.learn_action(kick)
        assert alice.points[EXPERIENCE].get_value() == 88
        assert alice.record.learned_actions == [5]
        assert alice.get_learn_problem(kick).reason == "You have already learned this action."

    def test_learn_capacity(self, alice, catalog):
        alice.record.learned_actions = [5, 6, 7, 8, 9, 10, 11]
        alice.points[EXPERIENCE].set_value(100)
        problem = alice.get_learn_problem(catalog.get_action(12))
        assert problem.reason == "You can only learn up to 7 actions. Please forget an action first."

    def test_cannot_learn_in_battle(self, battle, alice, catalog):
        alice.points[EXPERIENCE].set_value(100)
        problem = alice.get_learn_problem(catalog.get_action(5))
        assert problem.reason == "You cannot learn an action while in battle."
        assert not alice.learn_action(catalog.get_action(5))
        assert alice.points[EXPERIENCE].get_value() == 100

    def test_learned_action_becomes_known(self, alice, catalog):
        kick = catalog.get_action(5)
        assert not alice.knows_action(kick)
        alice.points[EXPERIENCE].set_value(100)
        alice.learn_action(kick)
        assert alice.knows_action(kick)
        assert alice.get_learned_actions() == [kick]

    def test_learn_event(self, event_manager, alice, catalog):
        subscriber = Mock()
        event_manager.subscribe(EventType.ACTION_LEARNED, subscriber)
        alice.points[EXPERIENCE].set_value(100)
        alice.learn_action(catalog.get_action(5))
        event_manager.process_events()
        assert subscriber.call_args[0][0].experience_cost == 12

    def test_forget_clears_key_binding(self, alice, catalog):
        kick = catalog.get_action(5)
        alice.record.learned_actions = [5]
        assert alice.bind_action(kick, 2)
        assert alice.forget_action(kick)
        assert alice.record.learned_actions == []
        assert alice.record.key_actions == [None, None, None]
        assert not alice.forget_action(kick)

    def test_cannot_forget_in_battle(self, world, alice, bob, catalog):
        alice.record.learned_actions = [5]
        world.start_battle(alice, bob)
        assert not alice.forget_action(catalog.get_action(5))
        assert alice.record.learned_actions == [5]


class TestKeyBindings:

    def test_bind_and_unbind(self, alice, punch):
        assert alice.bind_action(punch, 0)
        assert alice.get_key_action(0) is punch
        assert alice.bind_action(None, 0)
        assert alice.get_key_action(0) is None

    def test_invalid_keys(self, alice, punch):
        assert not alice.bind_action(punch, 10)
        assert not alice.bind_action(punch, -1)
        assert not alice.bind_action(punch, "1")
        assert not alice.bind_action(punch, True)
        assert alice.get_key_action(7) is None

    def test_unknown_action_cannot_be_bound(self, alice, catalog):
        assert not alice.bind_action(catalog.get_action(5), 0)


class TestLevelUp:

    def test_level_up(self, event_manager, alice):
        subscriber = Mock()
        event_manager.subscribe(EventType.LEVEL_GAINED, subscriber)
        alice.points[PointsName.HEALTH].set_value(3)
        alice.points[EXPERIENCE].set_value(30)
        assert alice.get_level_up_cost() == 25
        assert alice.level_up()
        assert alice.get_level() == 6
        assert alice.points[EXPERIENCE].get_value() == 5
        assert alice.points[PointsName.HEALTH].maximum_value == 30
        assert alice.points[PointsName.HEALTH].get_value() == 30
        event_manager.process_events()
        assert subscriber.call_args[0][0].new_level == 6

    def test_not_enough_experience(self, alice):
        alice.points[EXPERIENCE].set_value(24)
        assert not alice.level_up()
        assert alice.get_level() == 5

    def test_cannot_level_up_in_battle(self, battle, alice):
        alice.points[EXPERIENCE].set_value(100)
        assert not alice.level_up()


class TestWalking:

    def test_walk_to_free_tile(self, world, alice):
        assert alice.walk(Vector2(1, 0))
        assert alice.pos == Vector2(1, 0)
        assert world.get_occupant(Vector2(1, 0)) is alice
        assert world.get_occupant(Vector2(0, 0)) is None

    def test_walk_interval(self, clock, alice):
        assert alice.walk(Vector2(1, 0))
        assert not alice.walk(Vector2(1, 0))
        clock.advance(0.2)
        assert alice.walk(Vector2(1, 0))
        assert alice.pos == Vector2(2, 0)

    def test_walk_into_player_starts_battle(self, world, alice, bob):
        assert alice.walk(Vector2(0, 1))
        assert alice.battle is not None
        assert alice.battle is bob.battle
        assert alice.battle.get_turn_entity() is alice
        assert alice.pos == Vector2(0, 0)

    def test_cannot_walk_in_battle(self, battle, alice):
        assert not alice.walk(Vector2(1, 0))

    def test_unwalkable_tile(self, catalog, clock, rng):
        world = World(catalog, rng=rng, clock=clock, pos_is_walkable=lambda pos: pos.x < 1)
        player = PlayerEntity(world, PlayerRecord("frank"))
        assert not player.walk(Vector2(0, 1))
        assert player.pos == Vector2(0, 0)


class TestEnemy:

    def test_enemy_points(self, world, catalog):
        enemy = EnemyEntity(world, Vector2(3, 3), 5, catalog.species_list[0])
        assert enemy.kind == EntityKind.ENEMY
        assert enemy.get_name() == "Level 5 slime"
        assert enemy.points[PointsName.HEALTH].get_value() == 25
        assert enemy.points[PointsName.GOLD].get_value() == 100

    def test_known_actions_follow_level(self, world, catalog):
        slime = catalog.species_list[0]
        weak = EnemyEntity(world, Vector2(3, 3), 1, slime)
        strong = EnemyEntity(world, Vector2(4, 4), 20, slime)
        assert weak.get_known_actions() == catalog.free_actions
        assert strong.get_known_actions() == catalog.actions
        # Regenerate needs level 8, halved for slimes
        mid = EnemyEntity(world, Vector2(5, 5), 4, slime)
        assert mid.knows_action(catalog.get_action(12))
        assert mid.knows_action(catalog.get_action(6))
        assert not mid.knows_action(catalog.get_action(10))

    def test_decision_handler_acts_on_turn(self, world, catalog, alice, do_nothing):
        handler = Mock(return_value=do_nothing)
        enemy = EnemyEntity(world, Vector2(0, 1), 5, catalog.species_list[0], handler)
        battle = world.start_battle(enemy, alice)
        alice.timer_event()
        enemy.timer_event()
        handler.assert_called_once_with(enemy)
        assert battle.turn_index == 1
        enemy.timer_event()
        assert handler.call_count == 1
