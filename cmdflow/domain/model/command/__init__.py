"""Command domain models.

- CommandMetadata / ArgDefinition: parsed command declarations
- TemplateCommand / AgentCommand: the two command variants
- CommandInfo: listing snapshot
"""

from cmdflow.domain.model.command.command import (
    AgentCommand,
    Command,
    CommandInfo,
    CommandSource,
    TemplateCommand,
    make_command,
)
from cmdflow.domain.model.command.metadata import (
    COMMAND_NAME_PATTERN,
    ArgDefinition,
    ArgType,
    CommandCategory,
    CommandMetadata,
    CommandPermissions,
    is_valid_command_name,
)

__all__ = [
    "COMMAND_NAME_PATTERN",
    "AgentCommand",
    "ArgDefinition",
    "ArgType",
    "Command",
    "CommandCategory",
    "CommandInfo",
    "CommandMetadata",
    "CommandPermissions",
    "CommandSource",
    "TemplateCommand",
    "is_valid_command_name",
    "make_command",
]
