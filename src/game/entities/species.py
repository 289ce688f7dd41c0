"""Species and their action discounts.

Every entity belongs to a species. A species discounts actions whose effect
tree contains a node matching one of its discount rules; the discounted set
is computed once when the catalog is built.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, TYPE_CHECKING

from ...core.data.game_enums import EffectKind
from ...core.engine.effects import (
    Effect,
    effect_affects_points,
    effect_has_direction,
    iterate_over_effects,
)

if TYPE_CHECKING:
    from ...core.engine.actions import Action


@dataclass(frozen=True)
class DiscountRule:
    """Pattern over a single effect node. None fields match anything."""
    effect_kind: Optional[EffectKind] = None
    points_name: Optional[str] = None
    direction: Optional[int] = None
    apply_to_opponent: Optional[bool] = None

    def matches(self, effect: Effect) -> bool:
        if self.effect_kind is not None and effect.kind != self.effect_kind:
            return False
        if self.points_name is not None and not effect_affects_points(effect, self.points_name):
            return False
        if self.direction is not None and not effect_has_direction(effect, self.direction):
            return False
        if self.apply_to_opponent is not None:
            if getattr(effect, "apply_to_opponent", None) != self.apply_to_opponent:
                return False
        return True

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "DiscountRule":
        effect_name = data.get("effect")
        return cls(
            effect_kind=None if effect_name is None else EffectKind(effect_name),
            points_name=data.get("pointsName"),
            direction=data.get("direction"),
            apply_to_opponent=data.get("applyToOpponent"),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "effect": None if self.effect_kind is None else self.effect_kind.value,
            "pointsName": self.points_name,
            "direction": self.direction,
            "applyToOpponent": self.apply_to_opponent,
        }


class Species:
    """A species with its discount rules."""

    def __init__(
        self,
        serial_integer: int,
        name: str,
        discount_rules: Iterable[DiscountRule] = (),
        description: str = ""
    ):
        self.serial_integer = serial_integer
        self.name = name
        self.description = description
        self.discount_rules = tuple(discount_rules)
        self.discounted_serials: frozenset[int] = frozenset()

    def action_matches_discount(self, action: "Action") -> bool:
        """Scan an action's effect tree for a node matching any discount rule."""
        if action.effect is None:
            return False
        return any(
            rule.matches(node)
            for node in iterate_over_effects(action.effect)
            for rule in self.discount_rules
        )

    def initialize_discounts(self, actions: Iterable["Action"]) -> None:
        self.discounted_serials = frozenset(
            action.serial_integer for action in actions if self.action_matches_discount(action)
        )

    def is_discounted(self, action: "Action") -> bool:
        return action.serial_integer in self.discounted_serials

    def to_json(self) -> dict[str, Any]:
        return {
            "serialInteger": self.serial_integer,
            "name": self.name,
            "description": self.description,
            "discountedActions": sorted(self.discounted_serials),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Species":
        try:
            return cls(
                serial_integer=data["serialInteger"],
                name=data["name"],
                discount_rules=[DiscountRule.from_json(rule) for rule in data.get("discounts", [])],
                description=data.get("description", ""),
            )
        except KeyError as e:
            raise ValueError(f"Species record is missing field {e}: {data!r}")

    def __repr__(self) -> str:
        return f"Species({self.serial_integer}, {self.name!r})"
