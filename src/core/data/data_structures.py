"""Small value types shared across the combat core."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Vector2:
    """2D integer position in the world.

    Uses (y, x) ordering to match row-major tile storage. Only occupancy is
    tracked by the combat core, so the type stays deliberately small.
    """
    y: int
    x: int

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.y + other.y, self.x + other.x)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.y - other.y, self.x - other.x)

    def __iter__(self):
        """Make Vector2 iterable for unpacking (y, x order)."""
        yield self.y
        yield self.x

    def __repr__(self) -> str:
        return f"Vector2({self.y}, {self.x})"

    def orthogonal_distance_to(self, other: "Vector2") -> int:
        """Chebyshev distance, the number of king moves between two tiles."""
        return max(abs(self.y - other.y), abs(self.x - other.x))

    def to_json(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Vector2":
        return cls(int(data["y"]), int(data["x"]))


# Offsets a walking entity may take, indexed by the client's offset index.
WALK_OFFSETS = (
    Vector2(0, -1),
    Vector2(0, 1),
    Vector2(-1, 0),
    Vector2(1, 0),
)
