"""Core data structures and definitions.

This package contains fundamental data types and game definitions:
- data_structures.py: Vector2 positions and walk offsets
- game_enums.py: Centralized enums for points, effects, actions, battles
- balance.py: Balancing constants and their YAML loader
- formulas.py: Power curve, rewards, costs and fuzzy rounding
"""

from .data_structures import Vector2, WALK_OFFSETS
from .game_enums import (
    PointsName, POINTS_NAMES, POINTS_ABBREVIATIONS, OffsetKind, EffectKind,
    ActionKind, EntityKind, SlotState, BattlePhase
)
from .balance import BalanceConfig, BalanceConfigError, BalanceLoader, DEFAULT_BALANCE, load_balance_config
from .formulas import (
    round_half_up,
    fuzzy_round,
    get_power_multiplier,
    get_power_normalization,
    get_level_from_power,
    lambert_w_from_log,
    get_experience_multiplier,
    get_level_up_cost,
    get_action_learn_cost,
    get_damage_multiplier,
    get_maximum_health,
    get_reward_multiplier,
    get_gold_reward,
    get_experience_reward,
)

__all__ = [
    "Vector2",
    "WALK_OFFSETS",
    "PointsName",
    "POINTS_NAMES",
    "POINTS_ABBREVIATIONS",
    "OffsetKind",
    "EffectKind",
    "ActionKind",
    "EntityKind",
    "SlotState",
    "BattlePhase",
    "BalanceConfig",
    "BalanceConfigError",
    "BalanceLoader",
    "DEFAULT_BALANCE",
    "load_balance_config",
    "round_half_up",
    "fuzzy_round",
    "get_power_multiplier",
    "get_power_normalization",
    "get_level_from_power",
    "lambert_w_from_log",
    "get_experience_multiplier",
    "get_level_up_cost",
    "get_action_learn_cost",
    "get_damage_multiplier",
    "get_maximum_health",
    "get_reward_multiplier",
    "get_gold_reward",
    "get_experience_reward",
]
