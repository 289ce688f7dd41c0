"""Core combat engine.

This package contains the rules that resolve actions:
- effects.py: Effect tree variants, EffectContext, LingerState and dispatch functions
- actions.py: Action definitions, costs and validation results
"""

from .effects import (
    Effect,
    EffectContext,
    LingerState,
    SetPointsEffect,
    OffsetPointsEffect,
    TransferPointsEffect,
    SwapPointsEffect,
    BurstPointsEffect,
    LingerEffect,
    ClearStatusEffect,
    CompositeEffect,
    ChanceEffect,
    apply_effect,
    effect_affects_points,
    effect_has_recipient,
    effect_has_direction,
    effect_to_json,
    effect_from_json,
    get_child_effects,
    iterate_over_effects,
)
from .actions import Action, ActionValidation

__all__ = [
    "Effect",
    "EffectContext",
    "LingerState",
    "SetPointsEffect",
    "OffsetPointsEffect",
    "TransferPointsEffect",
    "SwapPointsEffect",
    "BurstPointsEffect",
    "LingerEffect",
    "ClearStatusEffect",
    "CompositeEffect",
    "ChanceEffect",
    "apply_effect",
    "effect_affects_points",
    "effect_has_recipient",
    "effect_has_direction",
    "effect_to_json",
    "effect_from_json",
    "get_child_effects",
    "iterate_over_effects",
    "Action",
    "ActionValidation",
]
