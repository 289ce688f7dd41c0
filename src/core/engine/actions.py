"""Action definitions for duel combat.

An action is a named effect tree with an energy cost. Free actions are known
by every entity; learnable actions must be learned with experience and carry
a minimum level.

Species may discount an action: its energy cost, minimum level and
experience cost are scaled by the configured discount before rounding.
Preconditions are checked by the entity, never by the action itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from ..data.formulas import get_action_learn_cost, round_half_up
from ..data.game_enums import ActionKind, PointsName
from .effects import Effect, EffectContext, apply_effect, effect_from_json, effect_to_json

if TYPE_CHECKING:
    from ...game.entities.entity import Entity


@dataclass
class ActionValidation:
    """Result of checking whether an entity may do something with an action."""

    is_valid: bool
    reason: str = ""

    @classmethod
    def valid(cls) -> "ActionValidation":
        """Create a valid result."""
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str) -> "ActionValidation":
        """Create an invalid result with reason."""
        return cls(is_valid=False, reason=reason)


@dataclass(frozen=True)
class Action:
    """A catalog entry entities can perform in battle.

    Attributes:
        serial_integer: Unique id used by the command contract and persistence
        name: Display name
        base_energy_cost: Energy cost before any species discount
        effect: Effect tree, or None for an action that only passes the turn
        kind: Free or learnable
        base_minimum_level: Level needed to learn, learnable actions only
        description: Optional flavour text for the presentation layer
    """

    serial_integer: int
    name: str
    base_energy_cost: int
    effect: Optional[Effect] = None
    kind: ActionKind = ActionKind.FREE
    base_minimum_level: Optional[int] = None
    description: str = ""

    @property
    def is_learnable(self) -> bool:
        return self.kind == ActionKind.LEARNABLE

    def is_discounted(self, entity: "Entity") -> bool:
        return entity.species.is_discounted(self)

    def _get_discount_scale(self, entity: "Entity", scale: float) -> float:
        return scale if self.is_discounted(entity) else 1

    def get_energy_cost(self, entity: "Entity") -> int:
        balance = entity.world.balance
        scale = self._get_discount_scale(entity, balance.action_energy_discount)
        return round_half_up(scale * self.base_energy_cost)

    def get_minimum_level(self, entity: "Entity") -> int:
        """Level required to learn this action; free actions have no requirement."""
        if not self.is_learnable:
            return 0
        balance = entity.world.balance
        scale = self._get_discount_scale(entity, balance.action_level_discount)
        return round_half_up(scale * self.base_minimum_level)

    def get_experience_cost(self, entity: "Entity") -> int:
        """Experience needed to learn this action at the entity's current level."""
        if not self.is_learnable:
            return 0
        balance = entity.world.balance
        scale = self._get_discount_scale(entity, balance.action_experience_discount)
        return round_half_up(scale * get_action_learn_cost(entity.get_level(), balance))

    def perform(self, performer: "Entity") -> None:
        """Apply the effect and pay the energy cost.

        The cost is paid even when the effect changes nothing.
        """
        if self.effect is not None:
            context = EffectContext(performer)
            apply_effect(self.effect, context)
        performer.points[PointsName.ENERGY].offset_value(-self.get_energy_cost(performer))

    def get_description(self) -> str:
        """Get human-readable description of the action."""
        return self.description or self.name

    def to_json(self) -> dict[str, Any]:
        output: dict[str, Any] = {
            "serialInteger": self.serial_integer,
            "name": self.name,
            "baseEnergyCost": self.base_energy_cost,
            "effect": None if self.effect is None else effect_to_json(self.effect),
            "type": self.kind.value,
            "description": self.description,
        }
        if self.is_learnable:
            output["baseMinimumLevel"] = self.base_minimum_level
        return output

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Action":
        """Build an action from a catalog record.

        Raises:
            ValueError: If the record is malformed
        """
        try:
            kind = ActionKind(data.get("type", ActionKind.FREE.value))
            effect_data = data.get("effect")
            effect = None if effect_data is None else effect_from_json(effect_data)
            base_minimum_level = data.get("baseMinimumLevel")
            if kind == ActionKind.LEARNABLE and base_minimum_level is None:
                raise ValueError("learnable actions require baseMinimumLevel")
            return cls(
                serial_integer=data["serialInteger"],
                name=data["name"],
                base_energy_cost=data.get("baseEnergyCost", 0),
                effect=effect,
                kind=kind,
                base_minimum_level=base_minimum_level,
                description=data.get("description", ""),
            )
        except KeyError as e:
            raise ValueError(f"Action record is missing field {e}: {data!r}")
