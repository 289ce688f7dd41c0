"""
Command pattern implementation for transport commands.

The transport layer delivers commands as mappings such as
{"commandName": "performAction", "serialInteger": 2}. CommandDispatcher turns
each one into an ActionCommand that calls the matching action_ method on a
handler bound to the sending player. Unknown commands, unknown serial
integers and failed preconditions are all no-ops.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, TYPE_CHECKING

from ..core.data.data_structures import WALK_OFFSETS
from ..core.events.events import DebugMessage

if TYPE_CHECKING:
    from ..core.engine.actions import Action
    from .entities.entity import PlayerEntity
    from .world import World


class Command(ABC):
    """Abstract base class for all player commands."""

    @abstractmethod
    def execute(self, handler: "PlayerCommandHandler") -> bool:
        """
        Execute the command.

        Args:
            handler: Handler bound to the sending player

        Returns:
            bool: True if the command changed game state, False otherwise
        """
        pass


class ActionCommand(Command):
    """Generic command that delegates to a handler method."""

    def __init__(self, action_name: str, **kwargs: Any):
        self.action_name = action_name
        self.kwargs = kwargs

    def execute(self, handler: "PlayerCommandHandler") -> bool:
        """Execute by calling the corresponding action method on the handler."""
        method_name = f"action_{self.action_name}"
        if hasattr(handler, method_name):
            method = getattr(handler, method_name)
            return method(**self.kwargs) is True
        return False


class PlayerCommandHandler:
    """Maps commands onto one player's entity operations."""

    def __init__(self, world: "World", player: "PlayerEntity"):
        self.world = world
        self.player = player

    def _get_action(self, serial_integer: Any) -> Optional["Action"]:
        return self.world.catalog.get_action(serial_integer)

    def action_perform_action(self, serial_integer: Any = None) -> bool:
        action = self._get_action(serial_integer)
        if action is None:
            return False
        return self.player.perform_action(action)

    def action_learn_action(self, serial_integer: Any = None) -> bool:
        action = self._get_action(serial_integer)
        if action is None:
            return False
        return self.player.learn_action(action)

    def action_forget_action(self, serial_integer: Any = None) -> bool:
        action = self._get_action(serial_integer)
        if action is None:
            return False
        return self.player.forget_action(action)

    def action_bind_action(self, serial_integer: Any = None, key_number: Any = None) -> bool:
        # A null serial integer unbinds the key
        if serial_integer is None:
            action = None
        else:
            action = self._get_action(serial_integer)
            if action is None:
                return False
        return self.player.bind_action(action, key_number)

    def action_level_up(self) -> bool:
        return self.player.level_up()

    def action_walk(self, offset_index: Any = None) -> bool:
        if isinstance(offset_index, bool) or not isinstance(offset_index, int):
            return False
        if not 0 <= offset_index < len(WALK_OFFSETS):
            return False
        return self.player.walk(WALK_OFFSETS[offset_index])

    def action_leave_battle(self) -> bool:
        if self.player.battle is None:
            return False
        self.player.leave_battle_early()
        return True


# commandName -> (handler action, {command field: keyword argument})
COMMAND_TABLE: dict[str, tuple[str, dict[str, str]]] = {
    "performAction": ("perform_action", {"serialInteger": "serial_integer"}),
    "learnAction": ("learn_action", {"serialInteger": "serial_integer"}),
    "forgetAction": ("forget_action", {"serialInteger": "serial_integer"}),
    "bindAction": ("bind_action", {"serialInteger": "serial_integer", "keyNumber": "key_number"}),
    "levelUp": ("level_up", {}),
    "walk": ("walk", {"offsetIndex": "offset_index"}),
    "leaveBattle": ("leave_battle", {}),
}


class CommandDispatcher:
    """Entry point for commands arriving from the transport layer."""

    def __init__(self, world: "World"):
        self.world = world

    def create_command(self, data: dict[str, Any]) -> Optional[Command]:
        entry = COMMAND_TABLE.get(data.get("commandName"))
        if entry is None:
            return None
        action_name, argument_names = entry
        kwargs = {keyword: data.get(field) for field, keyword in argument_names.items()}
        return ActionCommand(action_name, **kwargs)

    def dispatch(self, player: "PlayerEntity", data: dict[str, Any]) -> bool:
        """Run one command for a player.

        Returns:
            True if the command changed game state
        """
        command = self.create_command(data)
        if command is None:
            self.world.event_manager.publish(
                DebugMessage(
                    turn=0,
                    message=f"Ignored unknown command {data.get('commandName')!r}",
                    source="CommandDispatcher"
                ),
                source="CommandDispatcher"
            )
            return False
        return command.execute(PlayerCommandHandler(self.world, player))

    def dispatch_for_username(self, username: str, data: dict[str, Any]) -> bool:
        player = self.world.get_player_entity(username)
        if player is None:
            return False
        return self.dispatch(player, data)
