"""
Tests for the battle turn flow.

Players at level 5 have 25 health and a Punch deals 4 damage with the
scripted random source, so seven punches defeat a full-health player.
"""

from unittest.mock import Mock

import pytest

from src.core.data.data_structures import Vector2
from src.core.data.game_enums import BattlePhase, PointsName
from src.core.engine.actions import Action
from src.core.engine.effects import (
    BurstPointsEffect,
    EffectContext,
    LingerEffect,
    LingerState,
    OffsetPointsEffect,
)
from src.core.events.events import EventType
from src.core.points.points_offset import AbsoluteOffset

HEALTH = PointsName.HEALTH


@pytest.fixture
def poison():
    effect = LingerEffect(3, OffsetPointsEffect(HEALTH, True, AbsoluteOffset(-2)))
    return Action(90, "Test Poison", 0, effect)


@pytest.fixture
def weaken():
    effect = BurstPointsEffect(PointsName.DAMAGE, True, AbsoluteOffset(-2), 2)
    return Action(91, "Test Weaken", 0, effect)


def pass_turns(battle, do_nothing, count):
    for _ in range(count):
        assert battle.get_turn_entity().perform_action(do_nothing)


class TestBattleStart:

    def test_entities_leave_world_and_reset(self, world, alice, bob):
        alice.points[PointsName.DAMAGE].set_value(9)
        battle = world.start_battle(alice, bob)
        assert alice.battle is battle and bob.battle is battle
        assert world.get_occupant(alice.pos) is None
        assert world.get_occupant(bob.pos) is None
        assert alice.points[PointsName.ENERGY].get_value() == 10
        assert bob.points[PointsName.ENERGY].get_value() == 10
        assert alice.points[PointsName.DAMAGE].get_value() == 5
        assert world.battles == [battle]
        assert battle.get_turn_entity() is alice

    def test_started_with_dead_entity_finishes_immediately(self, world, alice, bob):
        bob.points[HEALTH].set_value(0)
        battle = world.start_battle(alice, bob)
        assert battle.is_finished

    def test_started_event(self, world, event_manager, alice, bob):
        subscriber = Mock()
        event_manager.subscribe(EventType.BATTLE_STARTED, subscriber)
        battle = world.start_battle(alice, bob)
        event_manager.process_events()
        subscriber.assert_called_once()
        assert subscriber.call_args[0][0].battle is battle


class TestTurnFlow:

    def test_only_turn_entity_may_act(self, battle, alice, bob, punch):
        assert not bob.perform_action(punch)
        assert alice.perform_action(punch)
        assert not alice.perform_action(punch)
        assert battle.turn_index == 1

    def test_turn_start_grants_energy(self, battle, alice, bob, do_nothing):
        action = Action(92, "Tiring", 3)
        assert alice.perform_action(action)
        assert alice.points[PointsName.ENERGY].get_value() == 7
        assert bob.perform_action(do_nothing)
        assert alice.points[PointsName.ENERGY].get_value() == 8

    def test_not_enough_energy(self, battle, alice):
        alice.points[PointsName.ENERGY].set_value(2)
        assert not alice.perform_action(Action(93, "Costly", 3))
        assert battle.turn_index == 0

    def test_action_message(self, battle, alice, punch):
        alice.perform_action(punch)
        # Messages reset at every turn change
        assert battle.action_messages == []
        assert battle.to_json()["turnIndex"] == 1

    def test_punches_until_defeat(self, world, battle, alice, bob, punch, do_nothing):
        for turn in range(7):
            assert alice.perform_action(punch)
            if turn < 6:
                assert bob.perform_action(do_nothing)
        assert bob.points[HEALTH].get_value() == 0
        assert battle.is_finished
        assert battle.message == "alice received 16 XP and 0 gold!"
        assert alice.points[PointsName.EXPERIENCE].get_value() == 16
        assert world.pvp_monitor.get_victory_count("alice", "bob") == 1
        assert not bob.perform_action(do_nothing)

    def test_finish_events(self, world, event_manager, battle, alice, bob, punch):
        finished = Mock()
        rewarded = Mock()
        announced = Mock()
        event_manager.subscribe(EventType.BATTLE_FINISHED, finished)
        event_manager.subscribe(EventType.REWARD_GRANTED, rewarded)
        event_manager.subscribe(EventType.CHAT_ANNOUNCEMENT, announced)
        bob.points[HEALTH].set_value(1)
        alice.perform_action(punch)
        event_manager.process_events()
        assert finished.call_args[0][0].winner is alice
        assert rewarded.call_args[0][0].experience == 16
        assert announced.call_args[0][0].message == "alice defeated bob."

    def test_gold_reward_limited_by_loser_gold(self, battle, alice, bob, punch):
        bob.points[PointsName.GOLD].set_value(5)
        bob.points[HEALTH].set_value(1)
        alice.perform_action(punch)
        assert bob.points[PointsName.GOLD].get_value() == 0
        assert alice.points[PointsName.GOLD].get_value() == 5

    def test_repeated_victories_withhold_experience(self, world, event_manager, battle, alice, bob, punch):
        world.pvp_monitor.register_victory(alice, bob)
        world.pvp_monitor.register_victory(alice, bob)
        throttled = Mock()
        event_manager.subscribe(EventType.REWARD_THROTTLED, throttled)
        bob.points[HEALTH].set_value(1)
        alice.perform_action(punch)
        event_manager.process_events()
        assert alice.points[PointsName.EXPERIENCE].get_value() == 0
        assert battle.message == "alice received 0 XP and 0 gold!"
        throttled.assert_called_once()

    def test_tie(self, event_manager, battle, alice, bob):
        finished = Mock()
        event_manager.subscribe(EventType.BATTLE_FINISHED, finished)
        alice.points[HEALTH].set_value(0)
        bob.points[HEALTH].set_value(0)
        battle.check_defeat()
        event_manager.process_events()
        assert battle.is_finished
        assert battle.message == "alice and bob perished in a tie."
        assert finished.call_args[0][0].winner is None


class TestLingerStates:

    def test_linger_lifecycle(self, battle, alice, bob, poison, do_nothing):
        assert alice.perform_action(poison)
        assert len(battle.linger_states) == 1
        assert bob.points[HEALTH].get_value() == 25

        expected_health = [23, 23, 21, 21, 19]
        for health in expected_health:
            pass_turns(battle, do_nothing, 1)
            assert bob.points[HEALTH].get_value() == health
        assert battle.linger_states == []

        pass_turns(battle, do_nothing, 4)
        assert bob.points[HEALTH].get_value() == 19

    def test_refresh_never_shortens(self, battle, alice):
        effect = OffsetPointsEffect(HEALTH, True, AbsoluteOffset(-2))
        battle.add_linger_state(LingerState(EffectContext(alice), effect, 3))
        battle.add_linger_state(LingerState(EffectContext(alice), effect, 2))
        assert [state.turn_count for state in battle.linger_states] == [3]
        battle.add_linger_state(LingerState(EffectContext(alice), effect, 5))
        assert [state.turn_count for state in battle.linger_states] == [5]

    def test_states_from_different_performers_coexist(self, battle, alice, bob):
        effect = OffsetPointsEffect(HEALTH, True, AbsoluteOffset(-2))
        battle.add_linger_state(LingerState(EffectContext(alice), effect, 3))
        battle.add_linger_state(LingerState(EffectContext(bob), effect, 3))
        assert len(battle.linger_states) == 2

    def test_clear_linger_states_filters(self, battle, alice, bob):
        effect = OffsetPointsEffect(HEALTH, True, AbsoluteOffset(-2))
        battle.add_linger_state(LingerState(EffectContext(alice), effect, 3))
        assert not battle.clear_linger_states(PointsName.DAMAGE, bob, None)
        assert not battle.clear_linger_states(None, alice, None)
        assert not battle.clear_linger_states(None, bob, 1)
        assert battle.clear_linger_states(HEALTH, bob, -1)
        assert battle.linger_states == []


class TestBursts:

    def test_opponent_burst_lasts_through_its_turns(self, battle, alice, bob, weaken, do_nothing):
        assert alice.perform_action(weaken)
        damage = bob.points[PointsName.DAMAGE]
        assert damage.get_effective_value() == 3
        pass_turns(battle, do_nothing, 2)
        assert damage.get_effective_value() == 3
        pass_turns(battle, do_nothing, 2)
        assert damage.get_effective_value() == 5
        assert damage.bursts == []


class TestTimeouts:

    def test_turn_times_out(self, clock, battle):
        assert battle.get_turn_timeout() == pytest.approx(15)
        clock.advance(10)
        battle.timer_event()
        assert battle.turn_index == 0
        clock.advance(6)
        battle.timer_event()
        assert battle.turn_index == 1
        assert battle.get_turn_timeout() == pytest.approx(15)

    def test_battles_with_enemies_are_untimed(self, world, clock, alice):
        enemy = world.spawn_enemy(Vector2(5, 5), level=5)
        battle = world.start_battle(alice, enemy)
        assert battle.get_turn_timeout() is None
        clock.advance(100)
        battle.timer_event()
        assert battle.turn_index == 0


class TestCleanUp:

    def test_finished_battle_is_reaped_after_delay(self, world, clock, battle, alice, bob, punch):
        bob.points[HEALTH].set_value(1)
        alice.perform_action(punch)
        clock.advance(1)
        world.timer_event()
        assert battle.phase == BattlePhase.FINISHED
        clock.advance(2)
        world.timer_event()
        assert battle.phase == BattlePhase.REAPED
        assert world.battles == []
        assert alice.battle is None and bob.battle is None
        # The loser respawns with full health
        assert bob.points[HEALTH].get_value() == 25
        assert world.get_occupant(Vector2(0, 1)) is bob
        assert world.get_occupant(Vector2(0, 0)) is alice

    def test_reaped_battle_ignores_ticks(self, clock, battle):
        battle.clean_up()
        clock.advance(100)
        battle.timer_event()
        assert battle.phase == BattlePhase.REAPED

    def test_defeated_enemy_is_removed(self, world, clock, alice, punch):
        enemy = world.spawn_enemy(Vector2(0, 1), level=5)
        battle = world.start_battle(alice, enemy)
        enemy.points[HEALTH].set_value(1)
        alice.perform_action(punch)
        assert battle.is_finished
        # Enemies carry enough gold to pay any reward
        assert alice.points[PointsName.GOLD].get_value() == 11
        clock.advance(3)
        world.timer_event()
        assert enemy.id not in world.entities
        assert world.get_occupant(Vector2(0, 1)) is None

    def test_enemy_defeated_by_burst_is_removed(self, world, clock, alice):
        drain = Action(92, "Test Drain", 0, BurstPointsEffect(HEALTH, True, AbsoluteOffset(-100), 3))
        enemy = world.spawn_enemy(Vector2(0, 1), level=5)
        battle = world.start_battle(alice, enemy)
        alice.perform_action(drain)
        assert battle.is_finished
        # Only the burst is negative; stored health is untouched
        assert enemy.points[HEALTH].get_value() > 0
        clock.advance(3)
        world.timer_event()
        assert enemy.id not in world.entities
        assert world.get_occupant(Vector2(0, 1)) is None

    def test_player_defeated_by_burst_respawns(self, world, clock, battle, alice, bob):
        drain = Action(92, "Test Drain", 0, BurstPointsEffect(HEALTH, True, AbsoluteOffset(-100), 3))
        bob.points[HEALTH].set_value(10)
        alice.perform_action(drain)
        assert battle.is_finished
        clock.advance(3)
        world.timer_event()
        assert bob.battle is None
        assert bob.points[HEALTH].get_value() == 25
        assert bob.points[HEALTH].bursts == []
        assert world.get_occupant(Vector2(0, 1)) is bob


class TestLeaveEarly:

    def test_leaving_forfeits(self, world, battle, alice, bob):
        alice.leave_battle_early()
        assert battle.is_finished
        assert alice.battle is None
        assert battle.get_entities() == [bob]
        assert bob.points[PointsName.EXPERIENCE].get_value() == 16
        # alice respawned with full health
        assert alice.points[HEALTH].get_value() == 25
        assert world.get_occupant(Vector2(0, 0)) is alice

    def test_vacated_slot_is_skipped_at_cleanup(self, world, clock, battle, alice, bob):
        alice.leave_battle_early()
        clock.advance(3)
        world.timer_event()
        assert bob.battle is None
        assert world.get_occupant(Vector2(0, 1)) is bob
        assert battle.to_json()["entities"][0] is None
