"""Command entities stored in the registry.

A command is one of two tagged variants sharing the same metadata:
``TemplateCommand`` renders its template into a prompt, while
``AgentCommand`` hands the rendered template to a routed agent.
Both are frozen, so the object handed out by a registry lookup can be
used independently of later reloads.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from cmdflow.domain.model.command.metadata import CommandCategory, CommandMetadata


class CommandSource(str, Enum):
    """Where a command definition came from."""

    USER = "user"
    BUILTIN = "builtin"


@dataclass(frozen=True)
class CommandInfo:
    """Listing snapshot of a command."""

    name: str
    description: str
    category: CommandCategory


@dataclass(frozen=True, kw_only=True)
class _CommandBase:
    metadata: CommandMetadata
    template: str
    source: CommandSource = CommandSource.USER
    file_path: Path | None = None

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def description(self) -> str:
        return self.metadata.description

    @property
    def category(self) -> CommandCategory:
        return self.metadata.category

    @property
    def is_builtin(self) -> bool:
        return self.source is CommandSource.BUILTIN

    def info(self) -> CommandInfo:
        """Return a listing snapshot of this command."""
        return CommandInfo(
            name=self.metadata.name,
            description=self.metadata.description,
            category=self.metadata.category,
        )


@dataclass(frozen=True, kw_only=True)
class TemplateCommand(_CommandBase):
    """Command whose template is expanded into the final prompt."""


@dataclass(frozen=True, kw_only=True)
class AgentCommand(_CommandBase):
    """Command delegated to an agent selected by the router."""

    def __post_init__(self):
        if not self.metadata.agent:
            raise ValueError(f"Command '{self.metadata.name}' is not marked as agent-backed")


Command = TemplateCommand | AgentCommand


def make_command(
    metadata: CommandMetadata,
    template: str,
    source: CommandSource = CommandSource.USER,
    file_path: Path | None = None,
) -> Command:
    """Build the command variant matching ``metadata.agent``."""
    if metadata.agent:
        return AgentCommand(
            metadata=metadata, template=template, source=source, file_path=file_path
        )
    return TemplateCommand(
        metadata=metadata, template=template, source=source, file_path=file_path
    )
