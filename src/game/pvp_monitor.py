"""
Throttle for experience farming between player accounts.

The monitor remembers when each player was rewarded for defeating each other
player. Rewards are keyed by the ordered (winner, loser) pair, so A beating B
is throttled independently of B beating A.
"""

from typing import Callable, TYPE_CHECKING

import numpy as np

from ..core.data.game_enums import EntityKind

if TYPE_CHECKING:
    from .entities.entity import Entity

MAXIMUM_REWARD_AMOUNT = 2
MAXIMUM_VICTORY_AGE = 60 * 60 * 24
GARBAGE_COLLECT_INTERVAL = 60


class PvpMonitor:
    """Sliding-window limiter on player-versus-player experience rewards."""

    def __init__(
        self,
        clock: Callable[[], float],
        maximum_reward_amount: int = MAXIMUM_REWARD_AMOUNT,
        maximum_victory_age: float = MAXIMUM_VICTORY_AGE,
        garbage_collect_interval: float = GARBAGE_COLLECT_INTERVAL
    ):
        self.clock = clock
        self.maximum_reward_amount = maximum_reward_amount
        self.maximum_victory_age = maximum_victory_age
        self.garbage_collect_interval = garbage_collect_interval
        # winner username -> loser username -> reward timestamps
        self.victory_map: dict[str, dict[str, list[float]]] = {}
        self.garbage_collect_time = 0.0

    def register_victory(self, winner: "Entity", loser: "Entity") -> bool:
        """Record a victory and report whether the winner may receive experience.

        Victories involving a non-player entity are always rewarded.
        """
        if winner.kind != EntityKind.PLAYER or loser.kind != EntityKind.PLAYER:
            return True
        loser_map = self.victory_map.setdefault(winner.username, {})
        timestamps = loser_map.setdefault(loser.username, [])
        if len(timestamps) >= self.maximum_reward_amount:
            return False
        timestamps.append(self.clock())
        return True

    def get_victory_count(self, winner_name: str, loser_name: str) -> int:
        return len(self.victory_map.get(winner_name, {}).get(loser_name, []))

    def garbage_collect(self) -> None:
        """Drop expired timestamps and the maps they leave empty."""
        current_time = self.clock()
        cutoff = current_time - self.maximum_victory_age
        for winner_name in list(self.victory_map):
            loser_map = self.victory_map[winner_name]
            for loser_name in list(loser_map):
                timestamps = np.asarray(loser_map[loser_name], dtype=np.float64)
                recent = timestamps[timestamps > cutoff]
                if recent.size > 0:
                    loser_map[loser_name] = recent.tolist()
                else:
                    del loser_map[loser_name]
            if not loser_map:
                del self.victory_map[winner_name]
        self.garbage_collect_time = current_time

    def timer_event(self) -> None:
        if self.clock() > self.garbage_collect_time + self.garbage_collect_interval:
            self.garbage_collect()
