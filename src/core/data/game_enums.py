"""Centralized game enums and constants.

This module contains all core enums that are used across multiple modules,
eliminating duplication and providing a single source of truth.
"""

from enum import Enum, auto


class PointsName:
    """Names of the points resources every entity carries."""
    HEALTH = "health"
    ENERGY = "energy"
    DAMAGE = "damage"
    EXPERIENCE = "experience"
    GOLD = "gold"


POINTS_NAMES = (
    PointsName.HEALTH,
    PointsName.ENERGY,
    PointsName.DAMAGE,
    PointsName.EXPERIENCE,
    PointsName.GOLD,
)

POINTS_ABBREVIATIONS = {
    PointsName.HEALTH: "HP",
    PointsName.ENERGY: "EP",
    PointsName.DAMAGE: "DP",
    PointsName.EXPERIENCE: "XP",
    PointsName.GOLD: "GP",
}


class OffsetKind(Enum):
    """Kinds of points offset strategies. Values are the serialized tags."""
    ABSOLUTE = "absolute"
    RATIO = "ratio"
    POWER = "power"
    EXPERIENCE = "experience"


class EffectKind(Enum):
    """Kinds of effect tree nodes. Values are the serialized tags."""
    SET_POINTS = "setPoints"
    OFFSET_POINTS = "offsetPoints"
    TRANSFER_POINTS = "transferPoints"
    SWAP_POINTS = "swapPoints"
    BURST_POINTS = "burstPoints"
    LINGER = "linger"
    CLEAR_STATUS = "clearStatus"
    COMPOSITE = "composite"
    CHANCE = "chance"


class ActionKind(Enum):
    """Kinds of actions an entity can perform."""
    FREE = "free"
    LEARNABLE = "learnable"


class EntityKind(Enum):
    """Entity flavours that matter to combat rules."""
    PLAYER = auto()
    ENEMY = auto()


class SlotState(Enum):
    """State of a combatant slot in a battle."""
    OCCUPIED = auto()
    VACATED = auto()


class BattlePhase(Enum):
    """Lifecycle of a battle."""
    ACTIVE = auto()
    FINISHED = auto()
    REAPED = auto()
