"""Combatant entities.

Entity holds what every combatant shares: a points map, a species, a level,
a placement in the world and an optional battle. PlayerEntity persists its
progress on a PlayerRecord; EnemyEntity lives only in memory and asks an
external decision handler which action to take.

Every player-triggered mutation re-checks its own precondition and returns
False without side effects when it does not hold.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TYPE_CHECKING

from ...core.data.data_structures import Vector2
from ...core.data.formulas import get_level_up_cost, get_maximum_health
from ...core.data.game_enums import EntityKind, PointsName, POINTS_ABBREVIATIONS
from ...core.engine.actions import Action, ActionValidation
from ...core.events.events import (
    ActionForgotten,
    ActionLearned,
    ActionPerformed,
    EntityDefeated,
    LevelGained,
    LogMessage,
)
from ...core.points.points import Points, RecordPoints, TempPoints
from .player_record import PlayerRecord
from .species import Species

if TYPE_CHECKING:
    from ..battle import Battle
    from ..world import World


class Entity(ABC):
    """Base class for anything that can fight."""

    kind: EntityKind

    def __init__(self, world: "World", pos: Vector2, species: Species):
        self.world = world
        self.id = world.next_entity_id()
        self.pos = pos
        self.species = species
        self.battle: Optional["Battle"] = None
        self.is_placed = False
        self.last_walk_time: Optional[float] = None
        self.points: dict[str, Points] = self.create_points()
        for name, points in self.points.items():
            points.name = name
        self.world.add_entity(self)
        self.add_to_world()

    @abstractmethod
    def create_points(self) -> dict[str, Points]:
        """Build the points map keyed by PointsName."""
        pass

    @abstractmethod
    def get_level(self) -> int:
        pass

    @abstractmethod
    def set_level(self, level: int) -> None:
        pass

    @abstractmethod
    def get_name(self) -> str:
        pass

    @abstractmethod
    def knows_action(self, action: Action) -> bool:
        """Whether the entity may perform the action at all."""
        pass

    @abstractmethod
    def handle_battle_defeat(self) -> None:
        """Called when the entity leaves a battle it lost."""
        pass

    # ============== Events and logging ==============

    def _get_turn(self) -> int:
        return 0 if self.battle is None else self.battle.turn_index

    def _emit_log(self, message: str, category: str = "BATTLE", level: str = "INFO") -> None:
        """Emit a log message event."""
        self.world.event_manager.publish(
            LogMessage(
                turn=self._get_turn(),
                message=message,
                category=category,
                level=level,
                source="Entity"
            ),
            source="Entity"
        )

    # ============== Placement ==============

    def add_to_world(self) -> None:
        if self.is_placed:
            return
        self.world.set_occupant(self.pos, self)
        self.is_placed = True

    def remove_from_world(self) -> None:
        if not self.is_placed:
            return
        self.world.clear_occupant(self.pos, self)
        self.is_placed = False

    def remove(self) -> None:
        """Remove the entity from the world entirely."""
        self.remove_from_world()
        self.world.remove_entity(self)

    def walk(self, offset: Vector2) -> bool:
        """Step one tile; stepping into another idle entity starts a battle.

        Steps are limited to one per walk interval of the world clock.
        """
        if self.battle is not None or not self.is_placed:
            return False
        current_time = self.world.clock()
        if self.last_walk_time is not None \
                and current_time - self.last_walk_time < self.world.balance.walk_interval:
            return False
        self.last_walk_time = current_time
        next_pos = self.pos + offset
        occupant = self.world.get_occupant(next_pos)
        if occupant is None:
            if not self.world.pos_is_walkable(next_pos):
                return False
            self.remove_from_world()
            self.pos = next_pos
            self.add_to_world()
            return True
        if self.world.can_start_battle(self, occupant):
            self.world.start_battle(self, occupant)
            return True
        return False

    # ============== Points ==============

    def get_maximum_health(self, level: Optional[int] = None) -> int:
        if level is None:
            level = self.get_level()
        return get_maximum_health(level, self.world.balance)

    def is_dead(self) -> bool:
        return self.points[PointsName.HEALTH].get_effective_value() <= 0

    def gain_experience(self, amount: int) -> None:
        self.points[PointsName.EXPERIENCE].offset_value(amount)

    def process_points_bursts(self) -> None:
        for points in self.points.values():
            points.process_bursts()

    def remove_all_points_bursts(self) -> None:
        for points in self.points.values():
            points.clear_bursts()

    def get_level_up_cost(self) -> int:
        return get_level_up_cost(self.get_level(), self.world.balance)

    def can_level_up(self) -> bool:
        return self.battle is None \
            and self.points[PointsName.EXPERIENCE].get_value() >= self.get_level_up_cost()

    def level_up(self) -> bool:
        """Spend experience to gain a level; maximum health grows and refills."""
        if not self.can_level_up():
            return False
        self.points[PointsName.EXPERIENCE].offset_value(-self.get_level_up_cost())
        self.set_level(self.get_level() + 1)
        health = self.points[PointsName.HEALTH]
        health.maximum_value = self.get_maximum_health()
        health.set_value(health.maximum_value)
        self.world.event_manager.publish(LevelGained(turn=0, entity=self, new_level=self.get_level()))
        self._emit_log(f"{self.get_name()} reached level {self.get_level()}.", "PROGRESSION")
        return True

    # ============== Battle ==============

    def get_opponent(self) -> Optional["Entity"]:
        if self.battle is None:
            return None
        return self.battle.get_opponent(self)

    def has_turn(self) -> bool:
        return self.battle is not None and not self.battle.is_finished \
            and self.battle.entity_has_turn(self)

    def can_perform_action(self, action: Action) -> bool:
        return self.has_turn() and self.knows_action(action) \
            and self.points[PointsName.ENERGY].get_value() >= action.get_energy_cost(self)

    def perform_action(self, action: Action) -> bool:
        """Perform an action on our turn and hand the turn over."""
        if not self.can_perform_action(action):
            return False
        battle = self.battle
        action.perform(self)
        battle.add_action_message(f"{self.get_name()} performed {action.name}.")
        self.world.event_manager.publish(
            ActionPerformed(turn=battle.turn_index, entity=self, action=action)
        )
        self._emit_log(f"{self.get_name()} performed {action.name}")
        battle.finish_turn()
        return True

    def defeat_event(self) -> None:
        """Called by the battle when this entity is defeated."""
        self.world.event_manager.publish(EntityDefeated(turn=self._get_turn(), entity=self))
        self._emit_log(f"{self.get_name()} was defeated")

    def leave_battle(self) -> None:
        """Return to the world after a battle is cleaned up."""
        if self.battle is None:
            return
        self.battle = None
        # Defeat counts bursts, so decide before clearing them
        defeated = self.is_dead()
        self.remove_all_points_bursts()
        if defeated:
            self.handle_battle_defeat()
        else:
            self.add_to_world()

    def leave_battle_early(self) -> None:
        """Forfeit the current battle, e.g. on disconnect."""
        if self.battle is not None:
            self.battle.leave_battle_early(self)

    def timer_event(self) -> None:
        pass

    # ============== Serialization ==============

    def get_points_text(self) -> str:
        return ", ".join(
            f"{points.get_effective_value()} {POINTS_ABBREVIATIONS[name]}"
            for name, points in self.points.items()
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.get_name(),
            "level": self.get_level(),
            "species": self.species.serial_integer,
            "pos": self.pos.to_json(),
            "points": {name: points.to_json() for name, points in self.points.items()},
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id}, {self.get_name()!r})"


class PlayerEntity(Entity):
    """Entity controlled by a player account."""

    kind = EntityKind.PLAYER

    def __init__(self, world: "World", record: PlayerRecord, species: Optional[Species] = None):
        self.record = record
        if self.record.level is None:
            self.record.level = 1
        if species is None:
            species = world.catalog.get_species(record.species) if record.species is not None else None
        if species is None:
            species = world.catalog.species_list[0]
        self.record.species = species.serial_integer
        if self.record.spawn_pos_x is None or self.record.spawn_pos_y is None:
            self.record.spawn_pos_x = 0
            self.record.spawn_pos_y = 0
        super().__init__(world, self.get_spawn_pos(), species)
        self.world.player_entities[self.record.username] = self

    def create_points(self) -> dict[str, Points]:
        balance = self.world.balance
        maximum_health = self.get_maximum_health()
        return {
            PointsName.HEALTH: RecordPoints(0, maximum_health, self.record, "health", maximum_health),
            PointsName.ENERGY: TempPoints(0, balance.maximum_energy, 0),
            PointsName.DAMAGE: TempPoints(0, balance.maximum_damage, balance.start_damage),
            PointsName.EXPERIENCE: RecordPoints(0, None, self.record, "experience", 0),
            PointsName.GOLD: RecordPoints(0, None, self.record, "gold", 0),
        }

    @property
    def username(self) -> str:
        return self.record.username

    def get_level(self) -> int:
        return self.record.level

    def set_level(self, level: int) -> None:
        self.record.level = level

    def get_name(self) -> str:
        return self.record.username

    def get_spawn_pos(self) -> Vector2:
        return Vector2(self.record.spawn_pos_y, self.record.spawn_pos_x)

    def remove(self) -> None:
        super().remove()
        self.world.player_entities.pop(self.record.username, None)

    def handle_battle_defeat(self) -> None:
        # Respawn with full health
        health = self.points[PointsName.HEALTH]
        health.set_value(health.maximum_value)
        self.pos = self.world.find_free_pos(self.get_spawn_pos())
        self.add_to_world()

    # ============== Learned actions ==============

    def get_learned_actions(self) -> list[Action]:
        actions = []
        for serial_integer in self.record.learned_actions:
            action = self.world.catalog.get_action(serial_integer)
            if action is not None:
                actions.append(action)
        return actions

    def has_learned_action(self, action: Action) -> bool:
        return action.serial_integer in self.record.learned_actions

    def knows_action(self, action: Action) -> bool:
        return not action.is_learnable or self.has_learned_action(action)

    def get_learn_problem(self, action: Action) -> ActionValidation:
        """Check whether the action can be learned, in the order the client reports problems."""
        if not action.is_learnable:
            return ActionValidation.invalid("This action does not need to be learned.")
        if self.has_learned_action(action):
            return ActionValidation.invalid("You have already learned this action.")
        if self.get_level() < action.get_minimum_level(self):
            return ActionValidation.invalid("Your level is not high enough to learn this action.")
        if self.points[PointsName.EXPERIENCE].get_value() < action.get_experience_cost(self):
            return ActionValidation.invalid("You do not have enough XP to learn this action.")
        capacity = self.world.balance.learnable_action_capacity
        if len(self.record.learned_actions) >= capacity:
            return ActionValidation.invalid(
                f"You can only learn up to {capacity} actions. Please forget an action first."
            )
        if self.battle is not None:
            return ActionValidation.invalid("You cannot learn an action while in battle.")
        return ActionValidation.valid()

    def can_learn_action(self, action: Action) -> bool:
        return self.get_learn_problem(action).is_valid

    def learn_action(self, action: Action) -> bool:
        if not self.can_learn_action(action):
            return False
        experience_cost = action.get_experience_cost(self)
        self.points[PointsName.EXPERIENCE].offset_value(-experience_cost)
        self.record.learned_actions.append(action.serial_integer)
        self.world.event_manager.publish(
            ActionLearned(turn=0, entity=self, action=action, experience_cost=experience_cost)
        )
        self._emit_log(f"{self.get_name()} learned {action.name}", "PROGRESSION")
        return True

    def can_forget_action(self, action: Action) -> bool:
        return self.battle is None and self.has_learned_action(action)

    def forget_action(self, action: Action) -> bool:
        """Forget a learned action and clear any key bound to it."""
        if not self.can_forget_action(action):
            return False
        self.record.learned_actions.remove(action.serial_integer)
        self.record.key_actions = [
            None if serial_integer == action.serial_integer else serial_integer
            for serial_integer in self.record.key_actions
        ]
        self.world.event_manager.publish(ActionForgotten(turn=0, entity=self, action=action))
        self._emit_log(f"{self.get_name()} forgot {action.name}", "PROGRESSION")
        return True

    # ============== Key bindings ==============

    def can_bind_action(self, action: Optional[Action], key_number: Any) -> bool:
        if isinstance(key_number, bool) or not isinstance(key_number, int):
            return False
        if not 0 <= key_number < self.world.balance.key_action_capacity:
            return False
        return action is None or self.knows_action(action)

    def bind_action(self, action: Optional[Action], key_number: int) -> bool:
        """Bind an action to a number key, or unbind the key when action is None."""
        if not self.can_bind_action(action, key_number):
            return False
        key_actions = self.record.key_actions
        while len(key_actions) <= key_number:
            key_actions.append(None)
        key_actions[key_number] = None if action is None else action.serial_integer
        return True

    def get_key_action(self, key_number: int) -> Optional[Action]:
        if not 0 <= key_number < len(self.record.key_actions):
            return None
        serial_integer = self.record.key_actions[key_number]
        if serial_integer is None:
            return None
        return self.world.catalog.get_action(serial_integer)

    def to_json(self) -> dict[str, Any]:
        output = super().to_json()
        output["username"] = self.record.username
        output["learnedActions"] = list(self.record.learned_actions)
        output["keyActions"] = list(self.record.key_actions)
        return output


DecisionHandler = Callable[["EnemyEntity"], Optional[Action]]


class EnemyEntity(Entity):
    """World-spawned opponent with in-memory points.

    The decision handler is the external AI; it is asked for an action on
    each tick where the enemy has the turn.
    """

    kind = EntityKind.ENEMY

    def __init__(
        self,
        world: "World",
        pos: Vector2,
        level: int,
        species: Species,
        decision_handler: Optional[DecisionHandler] = None
    ):
        self.level = level
        self.decision_handler = decision_handler
        super().__init__(world, pos, species)

    def create_points(self) -> dict[str, Points]:
        balance = self.world.balance
        maximum_health = self.get_maximum_health()
        return {
            PointsName.HEALTH: TempPoints(0, maximum_health, maximum_health),
            PointsName.ENERGY: TempPoints(0, balance.maximum_energy, 0),
            PointsName.DAMAGE: TempPoints(0, balance.maximum_damage, balance.start_damage),
            PointsName.EXPERIENCE: TempPoints(0, None, 0),
            # Enough gold to pay out any reward
            PointsName.GOLD: TempPoints(0, None, int(balance.reward_gold_scale)),
        }

    def get_level(self) -> int:
        return self.level

    def set_level(self, level: int) -> None:
        self.level = level

    def get_name(self) -> str:
        return f"Level {self.level} {self.species.name}"

    def knows_action(self, action: Action) -> bool:
        return not action.is_learnable or action.get_minimum_level(self) <= self.level

    def get_known_actions(self) -> list[Action]:
        return [action for action in self.world.catalog.actions if self.knows_action(action)]

    def handle_battle_defeat(self) -> None:
        self.remove()

    def timer_event(self) -> None:
        if self.decision_handler is None or not self.has_turn():
            return
        action = self.decision_handler(self)
        if action is not None:
            self.perform_action(action)
