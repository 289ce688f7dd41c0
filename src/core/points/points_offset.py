"""
Points offset strategies.

An offset strategy turns the performer's level and the target resource into
a signed raw magnitude. The strategies form a closed set of frozen variants;
every operation on them is a single function dispatching on the variant kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Union, TYPE_CHECKING

from ..data.balance import BalanceConfig, DEFAULT_BALANCE
from ..data.formulas import (
    fuzzy_round,
    get_damage_multiplier,
    get_experience_multiplier,
    get_power_multiplier,
    get_power_normalization,
)
from ..data.game_enums import OffsetKind, PointsName

if TYPE_CHECKING:
    from ..engine.effects import EffectContext
    from .points import Points


@dataclass(frozen=True)
class AbsoluteOffset:
    """Fixed magnitude, independent of level."""
    value: float
    kind: ClassVar[OffsetKind] = OffsetKind.ABSOLUTE


@dataclass(frozen=True)
class RatioOffset:
    """Fraction of the target resource's maximum value."""
    ratio: float
    kind: ClassVar[OffsetKind] = OffsetKind.RATIO


@dataclass(frozen=True)
class PowerOffset:
    """Magnitude that follows the power curve of the performer's level.

    Use from_value to author an offset: the value is the magnitude at the
    normalization level.
    """
    scale: float
    kind: ClassVar[OffsetKind] = OffsetKind.POWER

    @classmethod
    def from_value(cls, value: float, balance: BalanceConfig = DEFAULT_BALANCE) -> "PowerOffset":
        return cls(value / get_power_normalization(balance))


@dataclass(frozen=True)
class ExperienceOffset:
    """Magnitude linear in the performer's level."""
    scale: float
    kind: ClassVar[OffsetKind] = OffsetKind.EXPERIENCE


PointsOffset = Union[AbsoluteOffset, RatioOffset, PowerOffset, ExperienceOffset]


def _raw_absolute(offset: AbsoluteOffset, level: int, points: "Points", balance: BalanceConfig) -> float:
    return offset.value


def _raw_ratio(offset: RatioOffset, level: int, points: "Points", balance: BalanceConfig) -> float:
    # Unbounded points have no maximum to take a ratio of
    if points.maximum_value is None:
        return 0
    return offset.ratio * points.maximum_value


def _raw_power(offset: PowerOffset, level: int, points: "Points", balance: BalanceConfig) -> float:
    return offset.scale * get_power_multiplier(level, balance)


def _raw_experience(offset: ExperienceOffset, level: int, points: "Points", balance: BalanceConfig) -> float:
    return offset.scale * get_experience_multiplier(level, balance)


_RAW_OFFSET_HANDLERS: dict[OffsetKind, Callable[..., float]] = {
    OffsetKind.ABSOLUTE: _raw_absolute,
    OffsetKind.RATIO: _raw_ratio,
    OffsetKind.POWER: _raw_power,
    OffsetKind.EXPERIENCE: _raw_experience,
}


def get_absolute_offset(
    offset: PointsOffset,
    level: int,
    points: "Points",
    balance: BalanceConfig = DEFAULT_BALANCE
) -> float:
    """Raw signed magnitude of an offset for a performer level and target resource."""
    return _RAW_OFFSET_HANDLERS[offset.kind](offset, level, points, balance)


def get_scaled_offset(offset: PointsOffset, context: "EffectContext", points: "Points") -> float:
    """Raw magnitude with the damage multiplier applied to health loss.

    The damage stat comes from the context, captured when the context was
    created, so lingering effects keep the damage of the original cast.
    """
    value = get_absolute_offset(offset, context.performer.get_level(), points, context.balance)
    if points.name == PointsName.HEALTH and value < 0:
        value *= get_damage_multiplier(context.damage, context.balance)
    return value


def apply_offset(offset: PointsOffset, context: "EffectContext", points: "Points") -> int:
    """Fuzzily round the scaled offset and add it to points.

    Returns:
        The delta actually applied after clamping
    """
    value = get_scaled_offset(offset, context, points)
    return points.offset_value(fuzzy_round(value, context.rng))


def offset_is_positive(offset: PointsOffset) -> bool:
    if offset.kind == OffsetKind.ABSOLUTE:
        return offset.value > 0
    if offset.kind == OffsetKind.RATIO:
        return offset.ratio > 0
    return offset.scale > 0


_OFFSET_FIELDS: dict[OffsetKind, tuple[str, type]] = {
    OffsetKind.ABSOLUTE: ("value", AbsoluteOffset),
    OffsetKind.RATIO: ("ratio", RatioOffset),
    OffsetKind.POWER: ("scale", PowerOffset),
    OffsetKind.EXPERIENCE: ("scale", ExperienceOffset),
}


def offset_to_json(offset: PointsOffset) -> dict[str, Any]:
    """Serialize to a tagged record, e.g. {"name": "power", "scale": -1.2}."""
    field_name, _ = _OFFSET_FIELDS[offset.kind]
    return {"name": offset.kind.value, field_name: getattr(offset, field_name)}


def offset_from_json(data: dict[str, Any]) -> PointsOffset:
    """Parse a tagged record produced by offset_to_json.

    Raises:
        ValueError: If the tag is unknown or the magnitude field is missing
    """
    try:
        kind = OffsetKind(data["name"])
    except (KeyError, ValueError):
        raise ValueError(f"Unknown points offset record: {data!r}")
    field_name, variant = _OFFSET_FIELDS[kind]
    # Catalog files author power offsets by their magnitude at the normalization level
    if kind == OffsetKind.POWER and field_name not in data and "value" in data:
        return PowerOffset.from_value(data["value"])
    if field_name not in data:
        raise ValueError(f"Points offset '{kind.value}' requires '{field_name}'")
    return variant(data[field_name])
