"""
Points resources with temporary bursts.

A Points object is a bounded numeric resource (health, energy, damage,
experience, gold). Its stored value is always clamped to its bounds. On top
of the stored value sit temporary bursts: buffs and debuffs that expire after
a number of turns and affect only the effective value.

Storage is pluggable. TempPoints keeps the value in memory while RecordPoints
proxies it onto a field of an externally persisted record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class PointsBurst:
    """A temporary offset applied to the effective value of a Points."""

    def __init__(self, offset: int, turn_count: int, extra_turn_count: int = 0):
        """
        Args:
            offset: Signed magnitude added to the effective value
            turn_count: Visible number of remaining turns
            extra_turn_count: Turns consumed silently before turn_count starts
                decrementing, so a burst does not expire on the turn it lands
        """
        self.offset = offset
        self.turn_count = turn_count
        self.extra_turn_count = extra_turn_count

    def advance(self) -> None:
        """Count down one turn."""
        if self.extra_turn_count > 0:
            self.extra_turn_count -= 1
        else:
            self.turn_count -= 1

    def is_finished(self) -> bool:
        return self.turn_count + self.extra_turn_count <= 0

    def has_direction(self, direction: int) -> bool:
        return (self.offset > 0) == (direction > 0)

    def get_verb(self) -> str:
        return "raise" if self.offset > 0 else "lower"

    def to_json(self) -> dict[str, int]:
        return {"offset": self.offset, "turnCount": self.turn_count}

    def __repr__(self) -> str:
        return f"PointsBurst({self.offset}, {self.turn_count}, {self.extra_turn_count})"


class Points(ABC):
    """Base class for bounded resources.

    Subclasses decide where the stored value lives; every write goes through
    set_value so the clamping invariant holds for all backends.
    """

    def __init__(self, minimum_value: Optional[int], maximum_value: Optional[int]):
        self.minimum_value = minimum_value
        self.maximum_value = maximum_value
        # Assigned when the owning entity builds its points map
        self.name: Optional[str] = None
        self.bursts: list[PointsBurst] = []

    @abstractmethod
    def get_value(self) -> int:
        """Get the stored value, ignoring bursts."""
        pass

    @abstractmethod
    def _store_value(self, value: int) -> None:
        """Write an already clamped value to the backing storage."""
        pass

    def clamp_value(self, value: int) -> int:
        if self.minimum_value is not None:
            value = max(self.minimum_value, value)
        if self.maximum_value is not None:
            value = min(value, self.maximum_value)
        return value

    def set_value(self, value: int) -> None:
        self._store_value(self.clamp_value(value))

    def offset_value(self, offset: int) -> int:
        """Add offset to the stored value.

        Returns:
            The delta actually applied after clamping. Transfers must use this
            amount rather than the requested one.
        """
        last_value = self.get_value()
        self.set_value(last_value + offset)
        return self.get_value() - last_value

    def get_effective_value(self) -> int:
        """Stored value plus the most negative and the most positive burst.

        Bursts never stack: only the single most extreme burst in each
        direction contributes.
        """
        value = self.get_value()
        if self.bursts:
            offsets = [burst.offset for burst in self.bursts]
            value += min(0, min(offsets)) + max(0, max(offsets))
        return self.clamp_value(value)

    def add_burst(self, burst: PointsBurst) -> None:
        """Install a burst, keeping one burst per distinct offset.

        When a burst with the same offset exists, whichever has more
        remaining turns is kept.
        """
        for index, old_burst in enumerate(self.bursts):
            if old_burst.offset != burst.offset:
                continue
            if old_burst.turn_count <= burst.turn_count:
                self.bursts[index] = burst
            return
        self.bursts.append(burst)

    def process_bursts(self) -> None:
        """Advance every burst by one turn and drop finished bursts."""
        for burst in self.bursts:
            burst.advance()
        self.bursts = [burst for burst in self.bursts if not burst.is_finished()]

    def clear_bursts(self, direction: Optional[int] = None) -> bool:
        """Remove bursts, optionally only those pointing in one direction.

        Args:
            direction: None to remove every burst, otherwise only bursts whose
                sign matches the sign of direction are removed

        Returns:
            True if any burst was removed
        """
        last_length = len(self.bursts)
        if direction is None:
            self.bursts = []
        else:
            self.bursts = [burst for burst in self.bursts if not burst.has_direction(direction)]
        return len(self.bursts) < last_length

    def to_json(self) -> dict[str, Any]:
        return {
            "value": self.get_value(),
            "minimumValue": self.minimum_value,
            "maximumValue": self.maximum_value,
            "bursts": [burst.to_json() for burst in self.bursts],
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.name!r}, value={self.get_value()}, "
            f"bounds=[{self.minimum_value}, {self.maximum_value}], bursts={self.bursts})"
        )


class TempPoints(Points):
    """Points whose value lives only in memory."""

    def __init__(self, minimum_value: Optional[int], maximum_value: Optional[int], value: int):
        super().__init__(minimum_value, maximum_value)
        self.value = self.clamp_value(value)

    def get_value(self) -> int:
        return self.value

    def _store_value(self, value: int) -> None:
        self.value = value


class RecordPoints(Points):
    """Points proxied onto a field of an external persisted record.

    The record owns the value; persisting it is the record store's concern.
    A missing (None) field is initialised to default_value.
    """

    def __init__(
        self,
        minimum_value: Optional[int],
        maximum_value: Optional[int],
        record: Any,
        field_name: str,
        default_value: int
    ):
        super().__init__(minimum_value, maximum_value)
        self.record = record
        self.field_name = field_name
        if getattr(self.record, self.field_name) is None:
            self.set_value(default_value)
        else:
            # Bounds may have changed since the record was written
            self.set_value(self.get_value())

    def get_value(self) -> int:
        return getattr(self.record, self.field_name)

    def _store_value(self, value: int) -> None:
        setattr(self.record, self.field_name, value)
