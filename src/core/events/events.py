"""Event-driven system events.

This module defines all combat events that managers can subscribe to.

Event Design Principles:
- Events are immutable dataclasses with rich object payloads
- All events include the battle turn index (0 outside of battles)
- Events use proper enums instead of magic strings
- Keep event types focused and avoid over-granular events
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

if TYPE_CHECKING:
    from ..engine.actions import Action
    from ...game.battle import Battle
    from ...game.entities.entity import Entity


class EventType(Enum):
    """Types of combat events that managers can subscribe to."""
    # Battle lifecycle
    BATTLE_STARTED = auto()
    TURN_FINISHED = auto()
    BATTLE_FINISHED = auto()
    BATTLE_CLEANED_UP = auto()

    # Combat resolution
    ACTION_PERFORMED = auto()
    ENTITY_DEFEATED = auto()
    REWARD_GRANTED = auto()
    REWARD_THROTTLED = auto()

    # Progression
    ACTION_LEARNED = auto()
    ACTION_FORGOTTEN = auto()
    LEVEL_GAINED = auto()

    # Messaging
    CHAT_ANNOUNCEMENT = auto()
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()
    LOG_SAVE_REQUESTED = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all game events."""
    turn: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class BattleStarted(GameEvent):
    """Event emitted when two entities enter a battle."""
    battle: "Battle"

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.BATTLE_STARTED)


@dataclass(frozen=True)
class TurnFinished(GameEvent):
    """Event emitted after the turn index advances."""
    battle: "Battle"
    next_entity: Optional["Entity"]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_FINISHED)


@dataclass(frozen=True)
class BattleFinished(GameEvent):
    """Event emitted once a defeat condition ends the battle."""
    battle: "Battle"
    winner: Optional["Entity"] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.BATTLE_FINISHED)


@dataclass(frozen=True)
class BattleCleanedUp(GameEvent):
    """Event emitted when a finished battle is removed from the world."""
    battle: "Battle"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.BATTLE_CLEANED_UP)


@dataclass(frozen=True)
class ActionPerformed(GameEvent):
    """Event emitted when an entity performs an action in battle."""
    entity: "Entity"
    action: "Action"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_PERFORMED)


@dataclass(frozen=True)
class EntityDefeated(GameEvent):
    """Event emitted when an entity's effective health reaches zero."""
    entity: "Entity"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ENTITY_DEFEATED)


@dataclass(frozen=True)
class RewardGranted(GameEvent):
    """Event emitted when a winner receives gold and experience."""
    winner: "Entity"
    loser: "Entity"
    gold: int
    experience: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.REWARD_GRANTED)


@dataclass(frozen=True)
class RewardThrottled(GameEvent):
    """Event emitted when the PvP monitor withholds an experience reward."""
    winner: "Entity"
    loser: "Entity"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.REWARD_THROTTLED)


@dataclass(frozen=True)
class ActionLearned(GameEvent):
    """Event emitted when a player learns an action."""
    entity: "Entity"
    action: "Action"
    experience_cost: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_LEARNED)


@dataclass(frozen=True)
class ActionForgotten(GameEvent):
    """Event emitted when a player forgets an action."""
    entity: "Entity"
    action: "Action"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_FORGOTTEN)


@dataclass(frozen=True)
class LevelGained(GameEvent):
    """Event emitted when an entity levels up."""
    entity: "Entity"
    new_level: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LEVEL_GAINED)


@dataclass(frozen=True)
class ChatAnnouncement(GameEvent):
    """Event carrying a message for the external chat transport."""
    message: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.CHAT_ANNOUNCEMENT)


@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event emitted to log a message."""
    message: str
    category: str = "BATTLE"
    level: str = "INFO"
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(GameEvent):
    """Event emitted for debug output."""
    message: str
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)


@dataclass(frozen=True)
class LogSaveRequested(GameEvent):
    """Event emitted to request the log buffer be written to disk."""
    file_path: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_SAVE_REQUESTED)
