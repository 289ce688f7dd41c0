"""Entity system.

This package contains the combatants and the data they are built from:
- entity.py: Entity base class, PlayerEntity and EnemyEntity
- species.py: Species and their action discount rules
- player_record.py: Persisted player fields and their store encoding
"""

from .entity import Entity, PlayerEntity, EnemyEntity, DecisionHandler
from .species import Species, DiscountRule
from .player_record import PlayerRecord

__all__ = [
    "Entity",
    "PlayerEntity",
    "EnemyEntity",
    "DecisionHandler",
    "Species",
    "DiscountRule",
    "PlayerRecord",
]
