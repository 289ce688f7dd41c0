"""
Log management for combat and world messages.

Components never print; they publish LogMessage events. LogManager collects
them with categorization, filtering and bounded storage, and can write the
buffer to a file for post-mortem inspection of a session.
"""
import os
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional, TYPE_CHECKING

from ...core.events.events import (
    ChatAnnouncement,
    DebugMessage,
    EventType,
    GameEvent,
    LogMessage as LogEvent,
    LogSaveRequested,
)

if TYPE_CHECKING:
    from ...core.events.event_manager import EventManager


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()       # World and configuration messages
    BATTLE = auto()       # Combat messages
    PROGRESSION = auto()  # Levels and learned actions
    SPAWN = auto()        # Enemy spawning
    CHAT = auto()         # Announcements sent to the chat transport
    DEBUG = auto()        # Debug messages
    WARNING = auto()      # Warning messages
    ERROR = auto()        # Error messages


class LogLevel(Enum):
    """Log levels for filtering."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.BATTLE: "BTL",
    LogCategory.PROGRESSION: "PRG",
    LogCategory.SPAWN: "SPN",
    LogCategory.CHAT: "CHT",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}


@dataclass
class LogMessage:
    """A single log message with metadata."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    turn: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self, include_timestamp: bool = False, include_category: bool = True) -> str:
        """Format the message for display."""
        parts = []

        if include_timestamp:
            parts.append(f"[{self.timestamp.strftime('%H:%M:%S')}]")

        if include_category:
            parts.append(f"[{CATEGORY_TAGS.get(self.category, '???')}]")

        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Collects log events with categorization and filtering."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
        log_dir: str = "logs"
    ):
        """Initialize the log manager.

        Args:
            event_manager: Event manager the log events arrive on
            max_messages: Maximum number of messages to store in the buffer
            default_level: Minimum level returned by get_messages
            log_dir: Directory used by save_log_to_file when no path is given
        """
        self.messages: deque[LogMessage] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.event_manager = event_manager
        self.log_dir = log_dir

        # Categories that are only shown at a lower level than INFO
        self.category_levels = {
            LogCategory.DEBUG: LogLevel.DEBUG,
            LogCategory.SPAWN: LogLevel.DEBUG,
            LogCategory.WARNING: LogLevel.WARNING,
            LogCategory.ERROR: LogLevel.ERROR,
        }

        self._setup_event_subscriptions()

    def _setup_event_subscriptions(self) -> None:
        """Set up event subscriptions for centralized logging."""
        self.event_manager.subscribe(
            EventType.LOG_MESSAGE,
            self._handle_log_message_event,
            subscriber_name="LogManager.log_message"
        )
        self.event_manager.subscribe(
            EventType.DEBUG_MESSAGE,
            self._handle_debug_message_event,
            subscriber_name="LogManager.debug_message"
        )
        self.event_manager.subscribe(
            EventType.CHAT_ANNOUNCEMENT,
            self._handle_chat_announcement_event,
            subscriber_name="LogManager.chat_announcement"
        )
        self.event_manager.subscribe(
            EventType.LOG_SAVE_REQUESTED,
            self._handle_log_save_request,
            subscriber_name="LogManager.log_save_request"
        )

    def _handle_log_message_event(self, event: GameEvent) -> None:
        """Handle log message events from the event system."""
        if not isinstance(event, LogEvent):
            return
        try:
            category = LogCategory[event.category.upper()]
        except (KeyError, AttributeError):
            category = LogCategory.SYSTEM
        try:
            level = LogLevel[event.level.upper()]
        except (KeyError, AttributeError):
            level = LogLevel.INFO
        self.messages.append(LogMessage(text=event.message, category=category, level=level, turn=event.turn))

    def _handle_debug_message_event(self, event: GameEvent) -> None:
        """Handle debug message events from the event system."""
        if isinstance(event, DebugMessage):
            self.messages.append(
                LogMessage(text=f"[{event.source}] {event.message}", category=LogCategory.DEBUG,
                           level=LogLevel.DEBUG, turn=event.turn)
            )

    def _handle_chat_announcement_event(self, event: GameEvent) -> None:
        if isinstance(event, ChatAnnouncement):
            self.log(event.message, LogCategory.CHAT)

    def _handle_log_save_request(self, event: GameEvent) -> None:
        """Handle log save request events from the event system."""
        if isinstance(event, LogSaveRequested):
            self.save_log_to_file(event.file_path)

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM, level: LogLevel = LogLevel.INFO) -> None:
        """Add a message to the log directly."""
        self.messages.append(LogMessage(text=text, category=category, level=level))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def battle(self, text: str) -> None:
        self.log(text, LogCategory.BATTLE)

    def debug(self, text: str) -> None:
        self.log(text, LogCategory.DEBUG, LogLevel.DEBUG)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING, LogLevel.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR, LogLevel.ERROR)

    def _get_effective_level(self, message: LogMessage) -> LogLevel:
        return self.category_levels.get(message.category, message.level)

    def get_messages(
        self,
        count: Optional[int] = None,
        categories: Optional[set[LogCategory]] = None
    ) -> list[LogMessage]:
        """Get recent messages, optionally filtered by category.

        Args:
            count: Maximum number of messages to return (None for all)
            categories: Set of categories to include (None for all enabled)

        Returns:
            List of recent messages
        """
        if categories:
            filtered = [msg for msg in self.messages
                        if msg.category in categories and msg.category in self.enabled_categories]
        else:
            filtered = [
                msg for msg in self.messages
                if msg.category in self.enabled_categories
                and self._get_effective_level(msg).value >= self.log_level.value
            ]

        if count is not None and count < len(filtered):
            return filtered[-count:]
        return filtered

    def get_formatted_messages(self, count: Optional[int] = None) -> list[str]:
        return [msg.format() for msg in self.get_messages(count)]

    def clear(self) -> None:
        """Clear all messages from the log."""
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        """Check if debug messages are currently enabled."""
        return LogCategory.DEBUG in self.enabled_categories and self.log_level == LogLevel.DEBUG

    def save_log_to_file(self, file_path: Optional[str] = None) -> Optional[str]:
        """Save all messages, ignoring the current filters.

        Args:
            file_path: Destination; a timestamped file in log_dir when omitted

        Returns:
            The path written, or None if writing failed
        """
        if file_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            file_path = os.path.join(self.log_dir, f"log_{timestamp}.log")

        try:
            directory = os.path.dirname(file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(file_path, 'w', encoding='utf-8') as f:
                f.write("Skirmish - Combat Log\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("=" * 60 + "\n\n")

                if not self.messages:
                    f.write("No messages to save.\n")
                for msg in self.messages:
                    timestamp_str = msg.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
                    f.write(f"[{timestamp_str}] [{msg.category.name}] [turn {msg.turn}] {msg.text}\n")
        except OSError as e:
            self.error(f"Failed to save log file: {e}")
            return None

        self.system(f"Log saved to {file_path}")
        return file_path
