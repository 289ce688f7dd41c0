"""Manager systems that observe the game through the event bus."""

from .log_manager import LogManager, LogLevel, LogCategory

__all__ = [
    "LogManager",
    "LogLevel",
    "LogCategory",
]
