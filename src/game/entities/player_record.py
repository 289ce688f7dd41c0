"""Persisted player fields.

The account store owns these records; the combat core reads and writes them
through RecordPoints and PlayerEntity. The store keeps the two list fields as
JSON strings. That encoding exists only in from_fields and to_fields.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class PlayerRecord:
    """Typed view of one player's persisted fields.

    None values mean the field was never written; entity construction fills
    in defaults.
    """
    username: str
    species: Optional[int] = None
    level: Optional[int] = None
    health: Optional[int] = None
    experience: Optional[int] = None
    gold: Optional[int] = None
    spawn_pos_x: Optional[int] = None
    spawn_pos_y: Optional[int] = None
    learned_actions: list[int] = field(default_factory=list)
    key_actions: list[Optional[int]] = field(default_factory=list)

    @classmethod
    def from_fields(cls, username: str, fields: dict[str, Any]) -> "PlayerRecord":
        """Decode the account store's extra fields."""
        learned_actions = fields.get("learnedActions")
        key_actions = fields.get("keyActions")
        return cls(
            username=username,
            species=fields.get("species"),
            level=fields.get("level"),
            health=fields.get("health"),
            experience=fields.get("experience"),
            gold=fields.get("gold"),
            spawn_pos_x=fields.get("spawnPosX"),
            spawn_pos_y=fields.get("spawnPosY"),
            learned_actions=[] if learned_actions is None else json.loads(learned_actions),
            key_actions=[] if key_actions is None else json.loads(key_actions),
        )

    def to_fields(self) -> dict[str, Any]:
        """Encode for the account store."""
        return {
            "species": self.species,
            "level": self.level,
            "health": self.health,
            "experience": self.experience,
            "gold": self.gold,
            "spawnPosX": self.spawn_pos_x,
            "spawnPosY": self.spawn_pos_y,
            "learnedActions": json.dumps(self.learned_actions),
            "keyActions": json.dumps(self.key_actions),
        }
