"""
File system command loader.

Loads user commands from ``<commands_dir>/*.md`` files. Combines
directory scanning and markdown parsing; a file that fails to parse is
logged and skipped so one malformed command cannot break the rest.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from cmdflow.domain.model.command import Command, CommandSource, make_command
from cmdflow.infrastructure.agent.commands.markdown_parser import CommandMarkdownParser
from cmdflow.infrastructure.agent.errors import CommandFileParseError, CommandsDirectoryError

logger = logging.getLogger(__name__)


@dataclass
class CommandLoadResult:
    """
    Result of loading commands from the file system.

    Attributes:
        commands: Successfully loaded commands, keyed by name
        errors: Errors encountered during loading
    """

    commands: dict[str, Command] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.commands)


class UserCommandLoader:
    """
    Loads user commands from a directory of markdown files.

    Example:
        loader = UserCommandLoader(Path("~/.cmdflow/commands").expanduser())
        result = await loader.load_all()
        for name in result.commands:
            print(f"Loaded: /{name}")
    """

    def __init__(
        self,
        commands_dir: Path,
        extension: str = ".md",
        parser: CommandMarkdownParser | None = None,
    ) -> None:
        self.commands_dir = Path(commands_dir)
        self.extension = extension
        self.parser = parser or CommandMarkdownParser()

    def ensure_directory(self) -> None:
        """
        Create the commands directory if it does not exist.

        Raises:
            CommandsDirectoryError: If the directory cannot be created
        """
        try:
            self.commands_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CommandsDirectoryError(self.commands_dir, e) from e
        if not self.commands_dir.is_dir():
            raise CommandsDirectoryError(self.commands_dir, NotADirectoryError("not a directory"))

    async def load_all(self) -> CommandLoadResult:
        """
        Load all commands from the directory.

        Returns:
            CommandLoadResult with loaded commands and per-file errors

        Raises:
            CommandsDirectoryError: If the directory cannot be created or listed
        """
        return await asyncio.to_thread(self._load_all_sync)

    def _load_all_sync(self) -> CommandLoadResult:
        self.ensure_directory()
        result = CommandLoadResult()

        for file_path in self._scan():
            try:
                parsed = self.parser.parse_file(file_path)
            except CommandFileParseError as e:
                error_msg = f"Failed to parse {file_path}: {e.reason}"
                logger.warning(error_msg)
                result.errors.append(error_msg)
                continue

            name = parsed.metadata.name
            if name in result.commands:
                previous = result.commands[name].file_path
                logger.warning(
                    f"Command /{name} in {file_path} overrides the definition in {previous}"
                )
            result.commands[name] = make_command(
                parsed.metadata,
                parsed.template,
                source=CommandSource.USER,
                file_path=file_path,
            )

        logger.info(
            f"Loaded {result.count} user commands from {self.commands_dir}",
            extra={"errors": len(result.errors)},
        )
        return result

    def _scan(self) -> list[Path]:
        try:
            entries = list(self.commands_dir.iterdir())
        except OSError as e:
            raise CommandsDirectoryError(self.commands_dir, e) from e
        files = [
            entry
            for entry in entries
            if entry.suffix == self.extension and entry.is_file()
        ]
        return sorted(files, key=lambda p: p.name)
