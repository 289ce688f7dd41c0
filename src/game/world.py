"""
World state and the simulation tick.

The world owns the live entity and battle sets, tile occupancy, the PvP
monitor and the event bus. An external scheduler calls timer_event
periodically; it is the only driver of battles and entities, so nothing in
the combat core needs locking.

The clock and random source are injected so tests can control time and
outcomes.
"""

import time
from collections import deque
from typing import Callable, Optional

import numpy as np

from ..core.data.balance import BalanceConfig, DEFAULT_BALANCE
from ..core.data.data_structures import Vector2, WALK_OFFSETS
from ..core.data.formulas import get_level_from_power, get_power_multiplier, round_half_up
from ..core.data.game_enums import EntityKind
from ..core.events.event_manager import EventManager
from ..core.events.events import LogMessage
from .battle import Battle
from .catalog import Catalog
from .entities.entity import DecisionHandler, EnemyEntity, Entity, PlayerEntity
from .entities.species import Species
from .managers.log_manager import LogManager
from .pvp_monitor import PvpMonitor

ENEMY_SPAWN_RADIUS = 24
ENEMY_SPAWN_MINIMUM_DISTANCE = 8
MAXIMUM_ENEMIES_NEAR_PLAYER = 10
ENEMY_SPAWN_SKIP_CHANCE = 0.05
ENEMY_DESPAWN_CHANCE = 0.002


class World:
    """Container for everything a running game simulates."""

    def __init__(
        self,
        catalog: Catalog,
        balance: BalanceConfig = DEFAULT_BALANCE,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], float]] = None,
        event_manager: Optional[EventManager] = None,
        pos_is_walkable: Optional[Callable[[Vector2], bool]] = None,
        enemy_decision_handler: Optional[DecisionHandler] = None,
        enable_enemy_spawning: bool = False,
        log_manager: Optional[LogManager] = None
    ):
        """Initialize the world.

        Args:
            catalog: Actions and species available in this world
            balance: Balancing constants
            rng: Random source shared by battles and effects
            clock: Returns the current time in seconds
            event_manager: Event bus; a private one is created when omitted
            pos_is_walkable: Tile predicate from the external tile storage
            enemy_decision_handler: External AI given to spawned enemies
            enable_enemy_spawning: Whether the tick spawns and despawns enemies
            log_manager: Collector for log events; one is built on the event bus when omitted
        """
        self.catalog = catalog
        self.balance = balance
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock if clock is not None else time.time
        self.event_manager = event_manager if event_manager is not None else EventManager()
        self.log_manager = log_manager if log_manager is not None else LogManager(self.event_manager)
        self.event_manager.set_debug_callback(self.log_manager.debug)
        self._pos_is_walkable = pos_is_walkable
        self.enemy_decision_handler = enemy_decision_handler
        self.enable_enemy_spawning = enable_enemy_spawning

        self.entities: dict[int, Entity] = {}
        self.battles: list[Battle] = []
        self.player_entities: dict[str, PlayerEntity] = {}
        self.occupancy: dict[Vector2, Entity] = {}
        self.pvp_monitor = PvpMonitor(self.clock)
        self._next_entity_id = 1

    def _emit_log(self, message: str, category: str = "SYSTEM", level: str = "INFO") -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                turn=0,
                message=message,
                category=category,
                level=level,
                source="World"
            ),
            source="World"
        )

    # ============== Entity registry ==============

    def next_entity_id(self) -> int:
        entity_id = self._next_entity_id
        self._next_entity_id += 1
        return entity_id

    def add_entity(self, entity: Entity) -> None:
        self.entities[entity.id] = entity

    def remove_entity(self, entity: Entity) -> None:
        self.entities.pop(entity.id, None)

    def get_player_entity(self, username: str) -> Optional[PlayerEntity]:
        return self.player_entities.get(username)

    def get_enemies(self) -> list[EnemyEntity]:
        return [entity for entity in self.entities.values() if entity.kind == EntityKind.ENEMY]

    # ============== Occupancy ==============

    def get_occupant(self, pos: Vector2) -> Optional[Entity]:
        return self.occupancy.get(pos)

    def set_occupant(self, pos: Vector2, entity: Entity) -> None:
        self.occupancy[pos] = entity

    def clear_occupant(self, pos: Vector2, entity: Entity) -> None:
        if self.occupancy.get(pos) is entity:
            del self.occupancy[pos]

    def pos_is_walkable(self, pos: Vector2) -> bool:
        if self._pos_is_walkable is None:
            return True
        return self._pos_is_walkable(pos)

    def pos_is_free(self, pos: Vector2) -> bool:
        return pos not in self.occupancy and self.pos_is_walkable(pos)

    def find_free_pos(self, pos: Vector2, maximum_steps: int = 1000) -> Vector2:
        """Nearest free position to pos, searching outward breadth first."""
        visited = {pos}
        queue = deque([pos])
        steps = 0
        while queue and steps < maximum_steps:
            current = queue.popleft()
            if self.pos_is_free(current):
                return current
            for offset in WALK_OFFSETS:
                neighbor = current + offset
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
            steps += 1
        return pos

    # ============== Battles ==============

    def can_start_battle(self, entity1: Entity, entity2: Entity) -> bool:
        """Two idle entities fight when they collide; enemies never fight each other."""
        if entity1 is entity2 or entity1.battle is not None or entity2.battle is not None:
            return False
        return entity1.kind == EntityKind.PLAYER or entity2.kind == EntityKind.PLAYER

    def start_battle(self, entity1: Entity, entity2: Entity) -> Battle:
        return Battle(entity1, entity2)

    # ============== Enemies ==============

    def get_enemy_level(self, pos_x: int) -> int:
        """Enemy level for a world column.

        Enemy power grows linearly with distance from the origin; the power
        curve inverse turns that target back into a level.
        """
        distance = max(0, pos_x)
        power = get_power_multiplier(1, self.balance) + distance / self.balance.enemy_power_distance
        return max(1, round_half_up(get_level_from_power(power, self.balance)))

    def spawn_enemy(
        self,
        pos: Vector2,
        level: Optional[int] = None,
        species: Optional[Species] = None
    ) -> EnemyEntity:
        if level is None:
            level = self.get_enemy_level(pos.x)
        if species is None:
            species_list = self.catalog.species_list
            species = species_list[int(self.rng.integers(0, len(species_list)))]
        enemy = EnemyEntity(self, pos, level, species, self.enemy_decision_handler)
        self._emit_log(f"{enemy.get_name()} spawned at [{pos.y},{pos.x}]", "SPAWN", "DEBUG")
        return enemy

    def count_enemies_near(self, pos: Vector2) -> int:
        return sum(
            1 for enemy in self.get_enemies()
            if enemy.pos.orthogonal_distance_to(pos) < ENEMY_SPAWN_RADIUS
        )

    def enemy_can_occupy_pos(self, pos: Vector2) -> bool:
        return pos.x >= 0 and self.pos_is_free(pos)

    def spawn_enemy_near_player(self, player: PlayerEntity) -> Optional[EnemyEntity]:
        offsets = ENEMY_SPAWN_RADIUS - self.rng.integers(0, ENEMY_SPAWN_RADIUS * 2, size=2)
        pos = player.pos + Vector2(int(offsets[0]), int(offsets[1]))
        if not self.enemy_can_occupy_pos(pos) \
                or pos.orthogonal_distance_to(player.pos) < ENEMY_SPAWN_MINIMUM_DISTANCE:
            return None
        return self.spawn_enemy(pos)

    def spawn_enemies(self) -> None:
        for player in list(self.player_entities.values()):
            if self.rng.random() < ENEMY_SPAWN_SKIP_CHANCE:
                continue
            if self.count_enemies_near(player.pos) < MAXIMUM_ENEMIES_NEAR_PLAYER:
                self.spawn_enemy_near_player(player)

    def despawn_enemies(self) -> None:
        for enemy in self.get_enemies():
            if enemy.battle is not None or self.rng.random() > ENEMY_DESPAWN_CHANCE:
                continue
            is_near_player = any(
                enemy.pos.orthogonal_distance_to(player.pos) < ENEMY_SPAWN_RADIUS
                for player in self.player_entities.values()
            )
            if not is_near_player:
                enemy.remove()

    # ============== Tick ==============

    def timer_event(self) -> None:
        """Advance the simulation by one tick."""
        if self.enable_enemy_spawning:
            self.spawn_enemies()
            self.despawn_enemies()
        for entity in list(self.entities.values()):
            entity.timer_event()
        for battle in list(self.battles):
            battle.timer_event()
        self.pvp_monitor.timer_event()
        self.event_manager.process_events()
