"""
Turn-based duel between two entities.

A battle moves through three phases: active while turns proceed, finished
once a defeat is detected, and reaped when the world removes it after a
short grace period. finish_turn is the only way out of a turn; it is called
after every action, on turn timeout and when a participant leaves early.

Time is read from the world's injected clock, so tests can move it freely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING

from ..core.data.formulas import get_experience_reward, get_gold_reward
from ..core.data.game_enums import BattlePhase, EntityKind, PointsName, SlotState
from ..core.engine.effects import (
    LingerState,
    apply_effect,
    effect_affects_points,
    effect_has_direction,
    effect_has_recipient,
)
from ..core.events.events import (
    BattleCleanedUp,
    BattleFinished,
    BattleStarted,
    ChatAnnouncement,
    LogMessage,
    RewardGranted,
    RewardThrottled,
    TurnFinished,
)

if TYPE_CHECKING:
    from .entities.entity import Entity


@dataclass
class CombatantSlot:
    """One side of a battle. A vacated slot keeps its index."""
    entity: Optional["Entity"]
    state: SlotState = SlotState.OCCUPIED

    @property
    def is_occupied(self) -> bool:
        return self.state == SlotState.OCCUPIED

    def vacate(self) -> None:
        self.entity = None
        self.state = SlotState.VACATED


class Battle:
    """A duel between two entities of the same world."""

    def __init__(self, entity1: "Entity", entity2: "Entity"):
        self.slots = (CombatantSlot(entity1), CombatantSlot(entity2))
        self.world = entity1.world
        self.balance = self.world.balance
        self.turn_index = 0
        self.phase = BattlePhase.ACTIVE
        self.turn_start_time = 0.0
        self.turn_deadline = 0.0
        self.reset_turn_start_time()
        self.action_messages: list[str] = []
        self.message: Optional[str] = None
        self.linger_states: list[LingerState] = []

        start_energy = int(self.world.rng.integers(0, self.balance.maximum_energy + 1))
        for entity in self.get_entities():
            entity.remove_from_world()
            entity.battle = self
            entity.points[PointsName.ENERGY].set_value(start_energy)
            entity.points[PointsName.DAMAGE].set_value(self.balance.start_damage)
            entity.remove_all_points_bursts()
        self.world.battles.append(self)

        self.world.event_manager.publish(BattleStarted(turn=self.turn_index, battle=self))
        self._emit_log(f"Battle started: {entity1.get_name()} vs {entity2.get_name()}")
        self.check_defeat()

    # ============== Queries ==============

    @property
    def is_finished(self) -> bool:
        return self.phase != BattlePhase.ACTIVE

    def get_entities(self) -> list["Entity"]:
        """Entities still occupying a slot."""
        return [slot.entity for slot in self.slots if slot.is_occupied]

    def get_slot_index(self, entity: "Entity") -> Optional[int]:
        for index, slot in enumerate(self.slots):
            if slot.entity is entity:
                return index
        return None

    def get_opponent(self, entity: "Entity") -> Optional["Entity"]:
        index = 1 if self.slots[0].entity is entity else 0
        return self.slots[index].entity

    def get_turn_entity(self) -> Optional["Entity"]:
        return self.slots[self.turn_index % len(self.slots)].entity

    def entity_has_turn(self, entity: "Entity") -> bool:
        return entity is self.get_turn_entity()

    def get_turn_timeout(self) -> Optional[float]:
        """Seconds left before the turn is forfeited.

        Only battles between two players are timed.
        """
        if self.is_finished:
            return None
        if not all(slot.is_occupied and slot.entity.kind == EntityKind.PLAYER for slot in self.slots):
            return None
        return self.turn_deadline - self.world.clock()

    def reset_turn_start_time(self) -> None:
        self.turn_start_time = self.world.clock()
        self.turn_deadline = self.turn_start_time + self.balance.turn_timeout

    def add_action_message(self, message: str) -> None:
        self.action_messages.append(message)

    # ============== Logging ==============

    def _emit_log(self, message: str, category: str = "BATTLE", level: str = "INFO") -> None:
        """Emit a log message event."""
        self.world.event_manager.publish(
            LogMessage(
                turn=self.turn_index,
                message=message,
                category=category,
                level=level,
                source="Battle"
            ),
            source="Battle"
        )

    def _announce(self, message: str) -> None:
        self.world.event_manager.publish(ChatAnnouncement(turn=self.turn_index, message=message))

    # ============== Defeat and rewards ==============

    def _check_defeat_helper(self, loser_index: int, winner_index: int) -> None:
        loser = self.slots[loser_index].entity
        if loser is None or not loser.is_dead():
            return
        loser.defeat_event()
        self.phase = BattlePhase.FINISHED
        winner = self.slots[winner_index].entity
        if winner is None or winner.is_dead():
            return
        self._grant_reward(winner, loser)
        if loser.kind == EntityKind.PLAYER:
            self._announce(f"{winner.get_name()} defeated {loser.get_name()}.")

    def _grant_reward(self, winner: "Entity", loser: "Entity") -> None:
        winner_level = winner.get_level()
        loser_level = loser.get_level()
        rng = self.world.rng

        gold_reward = get_gold_reward(winner_level, loser_level, rng, self.balance)
        # The winner receives only what the loser could pay
        transfer_amount = -loser.points[PointsName.GOLD].offset_value(-gold_reward)
        winner.points[PointsName.GOLD].offset_value(transfer_amount)

        experience_reward = get_experience_reward(winner_level, loser_level, rng, self.balance)
        if self.world.pvp_monitor.register_victory(winner, loser):
            winner.gain_experience(experience_reward)
        else:
            experience_reward = 0
            self.world.event_manager.publish(
                RewardThrottled(turn=self.turn_index, winner=winner, loser=loser)
            )
            self._emit_log(
                f"Experience reward for {winner.get_name()} withheld after repeated victories",
                level="WARNING"
            )

        self.message = f"{winner.get_name()} received {experience_reward} XP and {transfer_amount} gold!"
        self.world.event_manager.publish(
            RewardGranted(
                turn=self.turn_index,
                winner=winner,
                loser=loser,
                gold=transfer_amount,
                experience=experience_reward
            )
        )
        self._emit_log(self.message)

    def check_defeat(self) -> None:
        """Resolve defeat for both orderings of the pair, once."""
        if self.is_finished:
            return
        self._check_defeat_helper(0, 1)
        self._check_defeat_helper(1, 0)
        if not self.is_finished:
            return
        if all(slot.is_occupied and slot.entity.is_dead() for slot in self.slots):
            name1 = self.slots[0].entity.get_name()
            name2 = self.slots[1].entity.get_name()
            self.message = f"{name1} and {name2} perished in a tie."
            self._announce(self.message)
        winner = next((entity for entity in self.get_entities() if not entity.is_dead()), None)
        self.world.event_manager.publish(
            BattleFinished(turn=self.turn_index, battle=self, winner=winner)
        )
        self._emit_log("Battle finished")

    # ============== Linger states ==============

    def add_linger_state(self, state: LingerState) -> None:
        """Register a linger state; refreshing never shortens a running one."""
        same_states = [
            old_state for old_state in self.linger_states
            if old_state.effect == state.effect and old_state.context.performer is state.context.performer
        ]
        if any(old_state.turn_count > state.turn_count for old_state in same_states):
            return
        self.linger_states = [
            old_state for old_state in self.linger_states
            if all(old_state is not same_state for same_state in same_states)
        ]
        self.linger_states.append(state)

    def process_linger_states(self) -> None:
        """Count down and re-apply the acting entity's linger states."""
        turn_entity = self.get_turn_entity()
        for state in list(self.linger_states):
            if state.context.performer is not turn_entity:
                continue
            state.turn_count -= 1
            if self.is_finished:
                continue
            apply_effect(state.effect, state.context)
            self.check_defeat()
        self.linger_states = [state for state in self.linger_states if state.turn_count > 0]

    def clear_linger_states(
        self,
        points_name: Optional[str],
        recipient: "Entity",
        direction: Optional[int]
    ) -> bool:
        """Remove linger states matching a resource, recipient and direction filter.

        Returns:
            True if any state was removed
        """
        def matches(state: LingerState) -> bool:
            effect = state.effect
            if points_name is not None and not effect_affects_points(effect, points_name):
                return False
            if not effect_has_recipient(effect, state.context, recipient):
                return False
            if direction is not None and not effect_has_direction(effect, direction):
                return False
            return True

        last_length = len(self.linger_states)
        self.linger_states = [state for state in self.linger_states if not matches(state)]
        return len(self.linger_states) < last_length

    # ============== Turn flow ==============

    def finish_turn(self) -> None:
        """End the current turn and start the next one."""
        self.check_defeat()
        self.turn_index += 1
        if not self.is_finished:
            turn_entity = self.get_turn_entity()
            if turn_entity is not None:
                turn_entity.points[PointsName.ENERGY].offset_value(1)
                turn_entity.process_points_bursts()
                self.check_defeat()
            self.process_linger_states()
        self.reset_turn_start_time()
        self.action_messages = []
        self.world.event_manager.publish(
            TurnFinished(turn=self.turn_index, battle=self, next_entity=self.get_turn_entity())
        )

    def leave_battle_early(self, entity: "Entity") -> None:
        """Forfeit for an entity that disconnects mid-battle."""
        index = self.get_slot_index(entity)
        if index is None:
            return
        entity.points[PointsName.HEALTH].set_value(0)
        entity.remove_all_points_bursts()
        self._emit_log(f"{entity.get_name()} left the battle")
        self.finish_turn()
        self.slots[index].vacate()
        entity.leave_battle()

    def clean_up(self) -> None:
        """Release both entities and remove the battle from the world."""
        for entity in self.get_entities():
            entity.leave_battle()
        if self in self.world.battles:
            self.world.battles.remove(self)
        self.phase = BattlePhase.REAPED
        self.world.event_manager.publish(BattleCleanedUp(turn=self.turn_index, battle=self))

    def timer_event(self) -> None:
        if self.phase == BattlePhase.REAPED:
            return
        if self.is_finished:
            if self.world.clock() > self.turn_start_time + self.balance.battle_cleanup_delay:
                self.clean_up()
            return
        timeout = self.get_turn_timeout()
        if timeout is not None and timeout <= 0:
            self._emit_log(f"{self.get_turn_entity().get_name()} ran out of time")
            self.finish_turn()

    # ============== Serialization ==============

    def to_json(self) -> dict[str, Any]:
        return {
            "entities": [None if slot.entity is None else slot.entity.to_json() for slot in self.slots],
            "turnIndex": self.turn_index,
            "turnTimeout": self.get_turn_timeout(),
            "isFinished": self.is_finished,
            "message": self.message,
            "actionMessages": list(self.action_messages),
            "lingerStates": [state.to_json() for state in self.linger_states],
        }
