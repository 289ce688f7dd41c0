"""
Effect tree interpreter.

Actions describe what they do as a tree of effect nodes. Leaf nodes mutate
points resources; parent nodes (linger, composite, chance) combine other
effects. Nodes are immutable and shared between actions, so every operation
is a dispatch function over the closed set of node kinds rather than a
method on the node.

Equality is by shape: two independently built trees with the same structure
compare equal. Burst and linger deduplication and species discount matching
all rely on this.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, Optional, Union, TYPE_CHECKING

import numpy as np

from ..data.formulas import fuzzy_round
from ..data.game_enums import EffectKind, PointsName, POINTS_NAMES
from ..points.points import PointsBurst
from ..points.points_offset import (
    PointsOffset,
    apply_offset,
    get_scaled_offset,
    offset_from_json,
    offset_is_positive,
    offset_to_json,
)

if TYPE_CHECKING:
    from ..data.balance import BalanceConfig
    from ..points.points import Points
    from ...game.battle import Battle
    from ...game.entities.entity import Entity


class EffectContext:
    """Everything an effect needs to resolve against a pair of combatants.

    The performer's effective damage is captured at creation so lingering
    effects keep hitting as hard as when they were cast.
    """

    def __init__(self, performer: "Entity", rng: Optional[np.random.Generator] = None):
        self.performer = performer
        self.opponent: Optional["Entity"] = performer.get_opponent()
        self.battle: Optional["Battle"] = performer.battle
        self.balance: "BalanceConfig" = performer.world.balance
        self.damage = performer.points[PointsName.DAMAGE].get_effective_value()
        self.rng = rng if rng is not None else performer.world.rng

    def get_entities(self) -> list["Entity"]:
        return [self.performer, self.opponent]

    def to_json(self) -> dict[str, Any]:
        return {"performerId": self.performer.id, "damage": self.damage}


@dataclass(frozen=True)
class SetPointsEffect:
    """Hard-set a resource, bypassing offset math."""
    points_name: str
    apply_to_opponent: bool
    value: int
    kind: ClassVar[EffectKind] = EffectKind.SET_POINTS


@dataclass(frozen=True)
class OffsetPointsEffect:
    """One-shot delta computed by an offset strategy."""
    points_name: str
    apply_to_opponent: bool
    offset: PointsOffset
    kind: ClassVar[EffectKind] = EffectKind.OFFSET_POINTS


@dataclass(frozen=True)
class TransferPointsEffect:
    """Take points from one side and give a fraction of them to the other."""
    points_name: str
    opponent_is_source: bool
    efficiency: float
    offset: PointsOffset
    kind: ClassVar[EffectKind] = EffectKind.TRANSFER_POINTS


@dataclass(frozen=True)
class SwapPointsEffect:
    """Exchange both combatants' values of one resource."""
    points_name: str
    kind: ClassVar[EffectKind] = EffectKind.SWAP_POINTS


@dataclass(frozen=True)
class BurstPointsEffect:
    """Install a temporary burst instead of a permanent change."""
    points_name: str
    apply_to_opponent: bool
    offset: PointsOffset
    turn_count: int
    kind: ClassVar[EffectKind] = EffectKind.BURST_POINTS


@dataclass(frozen=True)
class LingerEffect:
    """Re-apply an inner effect once per performer turn."""
    turn_count: int
    effect: "Effect"
    kind: ClassVar[EffectKind] = EffectKind.LINGER


@dataclass(frozen=True)
class ClearStatusEffect:
    """Remove bursts and linger states from one side.

    A None points_name matches every resource and a None direction matches
    both buffs and debuffs.
    """
    points_name: Optional[str]
    apply_to_opponent: bool
    direction: Optional[int]
    kind: ClassVar[EffectKind] = EffectKind.CLEAR_STATUS


@dataclass(frozen=True, eq=False)
class CompositeEffect:
    """Apply every child in order."""
    effects: tuple["Effect", ...]
    kind: ClassVar[EffectKind] = EffectKind.COMPOSITE

    def __eq__(self, other: object) -> bool:
        # Children are compared as a multiset
        if not isinstance(other, CompositeEffect) or len(self.effects) != len(other.effects):
            return False
        remaining = list(other.effects)
        for effect in self.effects:
            if effect not in remaining:
                return False
            remaining.remove(effect)
        return True

    def __hash__(self) -> int:
        return hash((self.kind, len(self.effects)))


@dataclass(frozen=True)
class ChanceEffect:
    """Apply one of two branches based on a single probability draw."""
    probability: float
    effect: "Effect"
    alternative_effect: Optional["Effect"] = None
    kind: ClassVar[EffectKind] = EffectKind.CHANCE


Effect = Union[
    SetPointsEffect,
    OffsetPointsEffect,
    TransferPointsEffect,
    SwapPointsEffect,
    BurstPointsEffect,
    LingerEffect,
    ClearStatusEffect,
    CompositeEffect,
    ChanceEffect,
]


class LingerState:
    """A linger effect's inner effect registered on a battle."""

    def __init__(self, context: EffectContext, effect: Effect, turn_count: int):
        self.context = context
        self.effect = effect
        self.turn_count = turn_count

    def to_json(self) -> dict[str, Any]:
        return {
            "context": self.context.to_json(),
            "effect": effect_to_json(self.effect),
            "turnCount": self.turn_count,
        }


def get_child_effects(effect: Effect) -> list[Effect]:
    """Direct children of a parent node; leaves have none."""
    if effect.kind == EffectKind.LINGER:
        return [effect.effect]
    if effect.kind == EffectKind.COMPOSITE:
        return list(effect.effects)
    if effect.kind == EffectKind.CHANCE:
        children = [effect.effect]
        if effect.alternative_effect is not None:
            children.append(effect.alternative_effect)
        return children
    return []


def iterate_over_effects(effect: Effect) -> Iterator[Effect]:
    """Visit a node and all of its descendants, depth first."""
    yield effect
    for child in get_child_effects(effect):
        yield from iterate_over_effects(child)


def _get_recipient(effect: Effect, context: EffectContext) -> "Entity":
    return context.opponent if effect.apply_to_opponent else context.performer


def _get_recipient_points(effect: Effect, context: EffectContext) -> "Points":
    return _get_recipient(effect, context).points[effect.points_name]


# Apply handlers

def _apply_set_points(effect: SetPointsEffect, context: EffectContext) -> None:
    _get_recipient_points(effect, context).set_value(effect.value)


def _apply_offset_points(effect: OffsetPointsEffect, context: EffectContext) -> None:
    apply_offset(effect.offset, context, _get_recipient_points(effect, context))


def _apply_transfer_points(effect: TransferPointsEffect, context: EffectContext) -> None:
    if effect.opponent_is_source:
        source, destination = context.opponent, context.performer
    else:
        source, destination = context.performer, context.opponent
    source_points = source.points[effect.points_name]
    destination_points = destination.points[effect.points_name]
    # The destination receives a share of what the source actually lost
    amount = apply_offset(effect.offset, context, source_points)
    destination_points.offset_value(-fuzzy_round(amount * effect.efficiency, context.rng))


def _apply_swap_points(effect: SwapPointsEffect, context: EffectContext) -> None:
    performer_points = context.performer.points[effect.points_name]
    opponent_points = context.opponent.points[effect.points_name]
    performer_value = performer_points.get_value()
    opponent_value = opponent_points.get_value()
    performer_points.set_value(opponent_value)
    opponent_points.set_value(performer_value)


def _apply_burst_points(effect: BurstPointsEffect, context: EffectContext) -> None:
    points = _get_recipient_points(effect, context)
    magnitude = fuzzy_round(get_scaled_offset(effect.offset, context, points), context.rng)
    if magnitude == 0:
        return
    # A burst on the opponent must survive the opponent's next turn start
    extra_turn_count = 1 if effect.apply_to_opponent else 0
    points.add_burst(PointsBurst(magnitude, effect.turn_count, extra_turn_count))


def _apply_linger(effect: LingerEffect, context: EffectContext) -> None:
    if context.battle is None:
        return
    context.battle.add_linger_state(LingerState(context, effect.effect, effect.turn_count))


def _apply_clear_status(effect: ClearStatusEffect, context: EffectContext) -> None:
    recipient = _get_recipient(effect, context)
    if context.battle is not None:
        context.battle.clear_linger_states(effect.points_name, recipient, effect.direction)
    if effect.points_name is None:
        points_names = POINTS_NAMES
    else:
        points_names = (effect.points_name,)
    for name in points_names:
        recipient.points[name].clear_bursts(effect.direction)


def _apply_composite(effect: CompositeEffect, context: EffectContext) -> None:
    for child in effect.effects:
        apply_effect(child, context)


def _apply_chance(effect: ChanceEffect, context: EffectContext) -> None:
    if context.rng.random() < effect.probability:
        apply_effect(effect.effect, context)
    elif effect.alternative_effect is not None:
        apply_effect(effect.alternative_effect, context)


_APPLY_HANDLERS: dict[EffectKind, Callable[[Any, EffectContext], None]] = {
    EffectKind.SET_POINTS: _apply_set_points,
    EffectKind.OFFSET_POINTS: _apply_offset_points,
    EffectKind.TRANSFER_POINTS: _apply_transfer_points,
    EffectKind.SWAP_POINTS: _apply_swap_points,
    EffectKind.BURST_POINTS: _apply_burst_points,
    EffectKind.LINGER: _apply_linger,
    EffectKind.CLEAR_STATUS: _apply_clear_status,
    EffectKind.COMPOSITE: _apply_composite,
    EffectKind.CHANCE: _apply_chance,
}


def apply_effect(effect: Effect, context: EffectContext) -> None:
    """Perform the mutations an effect describes."""
    _APPLY_HANDLERS[effect.kind](effect, context)


# Queries

_PARENT_KINDS = (EffectKind.LINGER, EffectKind.COMPOSITE, EffectKind.CHANCE)
_SINGLE_RECIPIENT_KINDS = (
    EffectKind.SET_POINTS,
    EffectKind.OFFSET_POINTS,
    EffectKind.BURST_POINTS,
    EffectKind.CLEAR_STATUS,
)
_DIRECTED_KINDS = (EffectKind.OFFSET_POINTS, EffectKind.TRANSFER_POINTS, EffectKind.BURST_POINTS)


def effect_affects_points(effect: Effect, name: str) -> bool:
    """Whether the effect, or any descendant, touches the named resource."""
    if effect.kind in _PARENT_KINDS:
        return any(effect_affects_points(child, name) for child in get_child_effects(effect))
    if effect.kind == EffectKind.CLEAR_STATUS:
        return effect.points_name is None or effect.points_name == name
    return effect.points_name == name


def effect_has_recipient(effect: Effect, context: EffectContext, recipient: "Entity") -> bool:
    """Whether the effect, resolved in context, lands on recipient."""
    if effect.kind in _PARENT_KINDS:
        return any(effect_has_recipient(child, context, recipient) for child in get_child_effects(effect))
    is_opponent = context.performer is not recipient
    if effect.kind in _SINGLE_RECIPIENT_KINDS:
        return effect.apply_to_opponent == is_opponent
    if effect.kind == EffectKind.TRANSFER_POINTS:
        return effect.opponent_is_source == is_opponent
    return False


def effect_has_direction(effect: Effect, direction: int) -> bool:
    """Whether the effect, or any descendant, moves a resource in direction's sign."""
    if effect.kind in _PARENT_KINDS:
        return any(effect_has_direction(child, direction) for child in get_child_effects(effect))
    if effect.kind in _DIRECTED_KINDS:
        return offset_is_positive(effect.offset) == (direction > 0)
    return False


# Serialization

def effect_to_json(effect: Effect) -> dict[str, Any]:
    """Serialize to a tagged record, recursively for nested effects and offsets."""
    output: dict[str, Any] = {"name": effect.kind.value}
    kind = effect.kind
    if kind in (EffectKind.SET_POINTS, EffectKind.OFFSET_POINTS, EffectKind.BURST_POINTS,
                EffectKind.TRANSFER_POINTS, EffectKind.SWAP_POINTS, EffectKind.CLEAR_STATUS):
        output["pointsName"] = effect.points_name
    if kind in _SINGLE_RECIPIENT_KINDS:
        output["applyToOpponent"] = effect.apply_to_opponent
    if kind == EffectKind.SET_POINTS:
        output["value"] = effect.value
    elif kind in (EffectKind.OFFSET_POINTS, EffectKind.BURST_POINTS):
        output["offset"] = offset_to_json(effect.offset)
        if kind == EffectKind.BURST_POINTS:
            output["turnCount"] = effect.turn_count
    elif kind == EffectKind.TRANSFER_POINTS:
        output["opponentIsSource"] = effect.opponent_is_source
        output["efficiency"] = effect.efficiency
        output["offset"] = offset_to_json(effect.offset)
    elif kind == EffectKind.LINGER:
        output["turnCount"] = effect.turn_count
        output["effect"] = effect_to_json(effect.effect)
    elif kind == EffectKind.CLEAR_STATUS:
        output["direction"] = effect.direction
    elif kind == EffectKind.COMPOSITE:
        output["effects"] = [effect_to_json(child) for child in effect.effects]
    elif kind == EffectKind.CHANCE:
        output["probability"] = effect.probability
        output["effect"] = effect_to_json(effect.effect)
        if effect.alternative_effect is None:
            output["alternativeEffect"] = None
        else:
            output["alternativeEffect"] = effect_to_json(effect.alternative_effect)
    return output


def _parse_set_points(data: dict[str, Any]) -> SetPointsEffect:
    return SetPointsEffect(data["pointsName"], data["applyToOpponent"], data["value"])


def _parse_offset_points(data: dict[str, Any]) -> OffsetPointsEffect:
    return OffsetPointsEffect(data["pointsName"], data["applyToOpponent"], offset_from_json(data["offset"]))


def _parse_transfer_points(data: dict[str, Any]) -> TransferPointsEffect:
    return TransferPointsEffect(
        data["pointsName"],
        data["opponentIsSource"],
        data["efficiency"],
        offset_from_json(data["offset"]),
    )


def _parse_swap_points(data: dict[str, Any]) -> SwapPointsEffect:
    return SwapPointsEffect(data["pointsName"])


def _parse_burst_points(data: dict[str, Any]) -> BurstPointsEffect:
    return BurstPointsEffect(
        data["pointsName"],
        data["applyToOpponent"],
        offset_from_json(data["offset"]),
        data["turnCount"],
    )


def _parse_linger(data: dict[str, Any]) -> LingerEffect:
    return LingerEffect(data["turnCount"], effect_from_json(data["effect"]))


def _parse_clear_status(data: dict[str, Any]) -> ClearStatusEffect:
    return ClearStatusEffect(data.get("pointsName"), data["applyToOpponent"], data.get("direction"))


def _parse_composite(data: dict[str, Any]) -> CompositeEffect:
    return CompositeEffect(tuple(effect_from_json(child) for child in data["effects"]))


def _parse_chance(data: dict[str, Any]) -> ChanceEffect:
    alternative = data.get("alternativeEffect")
    return ChanceEffect(
        data["probability"],
        effect_from_json(data["effect"]),
        None if alternative is None else effect_from_json(alternative),
    )


_PARSE_HANDLERS: dict[EffectKind, Callable[[dict[str, Any]], Effect]] = {
    EffectKind.SET_POINTS: _parse_set_points,
    EffectKind.OFFSET_POINTS: _parse_offset_points,
    EffectKind.TRANSFER_POINTS: _parse_transfer_points,
    EffectKind.SWAP_POINTS: _parse_swap_points,
    EffectKind.BURST_POINTS: _parse_burst_points,
    EffectKind.LINGER: _parse_linger,
    EffectKind.CLEAR_STATUS: _parse_clear_status,
    EffectKind.COMPOSITE: _parse_composite,
    EffectKind.CHANCE: _parse_chance,
}


def effect_from_json(data: dict[str, Any]) -> Effect:
    """Parse a tagged record produced by effect_to_json.

    Raises:
        ValueError: If a record has an unknown tag or is missing a field
    """
    try:
        kind = EffectKind(data["name"])
    except (KeyError, ValueError, TypeError):
        raise ValueError(f"Unknown effect record: {data!r}")
    try:
        return _PARSE_HANDLERS[kind](data)
    except KeyError as e:
        raise ValueError(f"Effect '{kind.value}' is missing field {e}")
