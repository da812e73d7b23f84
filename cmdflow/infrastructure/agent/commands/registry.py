"""Command registry for slash commands.

The registry owns the name -> command mapping. Writers (``reload``,
``register``, ``unregister``) are serialized by an ``asyncio.Lock`` and
publish a freshly built dict by swapping the reference, so readers
always see one complete snapshot and never a half-rebuilt map. Stored
commands are frozen, so a lookup result can be used independently of
later reloads.
"""

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from cmdflow.domain.model.command import Command, CommandCategory, CommandInfo
from cmdflow.infrastructure.agent.commands.loader import CommandLoadResult, UserCommandLoader

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Central registry for slash commands.

    Built-in commands added through ``register`` survive reloads; a user
    command file with the same name takes precedence over a built-in.
    """

    def __init__(self, commands_dir: Path, extension: str = ".md") -> None:
        super().__init__()
        self.commands_dir = Path(commands_dir)
        self._loader = UserCommandLoader(self.commands_dir, extension=extension)
        self._write_lock = asyncio.Lock()
        self._commands: Mapping[str, Command] = MappingProxyType({})
        self._pinned: dict[str, Command] = {}
        self._loaded: dict[str, Command] = {}
        self._last_errors: list[str] = []

    @classmethod
    async def create(cls, commands_dir: Path, extension: str = ".md") -> "CommandRegistry":
        """Create a registry, its directory, and run the initial load.

        Args:
            commands_dir: Directory holding user command files.
            extension: Command file extension.

        Returns:
            A populated registry.

        Raises:
            CommandsDirectoryError: If the directory is inaccessible.
        """
        registry = cls(commands_dir, extension=extension)
        await registry.reload()
        return registry

    @property
    def extension(self) -> str:
        return self._loader.extension

    @property
    def last_errors(self) -> list[str]:
        """Per-file errors from the most recent reload."""
        return list(self._last_errors)

    async def reload(self) -> CommandLoadResult:
        """Rescan the commands directory and replace the mapping.

        Returns:
            The load result of the rescan.

        Raises:
            CommandsDirectoryError: If the directory cannot be listed. The
                previous mapping stays in place.
        """
        async with self._write_lock:
            result = await self._loader.load_all()
            self._loaded = dict(result.commands)
            commands = self._rebuild()
            self._last_errors = list(result.errors)

        logger.debug("Registry reloaded: %d commands", len(commands))
        return result

    async def register(self, command: Command) -> None:
        """Add or overwrite a single command without rescanning.

        The command survives reloads. A user command file with the same
        name still takes precedence.

        Args:
            command: The command to register.
        """
        async with self._write_lock:
            self._pinned[command.name] = command
            self._rebuild()
        logger.debug("Registered command: /%s", command.name)

    async def unregister(self, name: str) -> bool:
        """Remove a command.

        A user command removed here comes back on the next reload if its
        file still exists.

        Returns:
            True if a command was removed.
        """
        async with self._write_lock:
            if name not in self._commands:
                return False
            self._pinned.pop(name, None)
            self._loaded.pop(name, None)
            self._rebuild()
        logger.debug("Unregistered command: /%s", name)
        return True

    def _rebuild(self) -> dict[str, Command]:
        # User command files take precedence over registered built-ins.
        commands: dict[str, Command] = {**self._pinned, **self._loaded}
        self._commands = MappingProxyType(commands)
        return commands

    def snapshot(self) -> Mapping[str, Command]:
        """Return the current read-only mapping."""
        return self._commands

    def get(self, name: str) -> Command | None:
        """Look up a command by name.

        Args:
            name: Command name without the leading slash.

        Returns:
            The command, or None if not registered.
        """
        return self._commands.get(name)

    def filter_by_category(self, category: CommandCategory) -> list[CommandInfo]:
        """List commands in ``category``, sorted by name."""
        return [info for info in self.list() if info.category == category]

    def names(self) -> set[str]:
        return set(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    # Defined last so the name does not shadow the builtin in annotations above.
    def list(self) -> list[CommandInfo]:
        """List all commands, sorted by name."""
        snapshot = self._commands
        return [snapshot[name].info() for name in sorted(snapshot)]
