"""Error hierarchy for the command pipeline.

Every error raised by parsing, argument mapping, template expansion,
lookup, I/O or delegated agent execution derives from ``CommandError``
and carries an ``ErrorCategory`` so callers can route on the kind of
failure without matching concrete classes.
"""

from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCategory(str, Enum):
    """Categories of command pipeline errors."""

    PARSE = "parse"
    ARGUMENT = "argument"
    TEMPLATE = "template"
    LOOKUP = "lookup"
    PERMISSION = "permission"
    IO = "io"
    AGENT_EXECUTION = "agent_execution"


class CommandError(Exception):
    """Base exception for all command pipeline errors."""

    category: ErrorCategory = ErrorCategory.PARSE

    def __init__(
        self,
        message: str,
        category: ErrorCategory | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for structured output."""
        data: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Parse errors
# ============================================================================


class InvocationParseError(CommandError):
    """Raised when slash-command text is malformed."""

    category = ErrorCategory.PARSE


class EmptyCommandError(InvocationParseError):
    def __init__(self) -> None:
        super().__init__("Command name cannot be empty")


class MissingSlashError(InvocationParseError):
    def __init__(self) -> None:
        super().__init__("Command must start with '/'")


class InvalidCommandNameError(InvocationParseError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Invalid command name '{name}': only letters, digits, '-' and '_' are allowed"
        )


class UnclosedQuotesError(InvocationParseError):
    def __init__(self) -> None:
        super().__init__("Unclosed quotes in command")


class TrailingEscapeError(InvocationParseError):
    def __init__(self) -> None:
        super().__init__("Trailing escape character in command")


class CommandFileParseError(CommandError):
    """Raised when a command definition file cannot be parsed."""

    category = ErrorCategory.PARSE

    def __init__(self, message: str, file_path: str | Path | None = None) -> None:
        self.file_path = str(file_path) if file_path is not None else None
        suffix = f" in {self.file_path}" if self.file_path else ""
        super().__init__(f"{message}{suffix}")
        self.reason = message


# ============================================================================
# Argument errors
# ============================================================================


class ArgumentError(CommandError):
    """Raised when invocation arguments do not fit the command schema."""

    category = ErrorCategory.ARGUMENT


class UnknownArgumentError(ArgumentError):
    def __init__(self, argument: str, command: str) -> None:
        self.argument = argument
        self.command = command
        super().__init__(f"Unknown argument '{argument}' for command '{command}'")


class MissingRequiredArgumentError(ArgumentError):
    def __init__(self, argument: str, command: str) -> None:
        self.argument = argument
        self.command = command
        super().__init__(f"Required argument '{argument}' missing for command '{command}'")


# ============================================================================
# Template errors
# ============================================================================


class TemplateExpansionError(CommandError):
    """Raised when a template cannot be rendered."""

    category = ErrorCategory.TEMPLATE


# ============================================================================
# Lookup errors
# ============================================================================


class CommandLookupError(CommandError):
    category = ErrorCategory.LOOKUP


class CommandNotFoundError(CommandLookupError):
    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(
            f"Command '{command}' not found. "
            "Run 'python -m cmdflow.cli.commands list' to see available commands."
        )


class AgentNotFoundError(CommandLookupError):
    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent '{agent_id}' not found")


class NoSuitableAgentError(CommandLookupError):
    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"No suitable agent found for command '{command}'")


# ============================================================================
# I/O errors
# ============================================================================


class CommandIOError(CommandError):
    category = ErrorCategory.IO


class CommandsDirectoryError(CommandIOError):
    """Raised when the commands directory cannot be created or scanned."""

    def __init__(self, path: str | Path, cause: Exception | None = None) -> None:
        self.path = str(path)
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot access commands directory '{self.path}'{detail}", cause=cause)


class WatcherSetupError(CommandIOError):
    """Raised when the filesystem watch cannot be established."""

    def __init__(self, path: str | Path, reason: str = "directory does not exist") -> None:
        self.path = str(path)
        super().__init__(f"Cannot watch commands directory '{self.path}': {reason}")


# ============================================================================
# Agent execution errors
# ============================================================================


class AgentExecutionError(CommandError):
    """Wraps an opaque failure raised by a delegated agent."""

    category = ErrorCategory.AGENT_EXECUTION

    def __init__(self, agent_id: str, cause: Exception) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent '{agent_id}' failed: {cause}", cause=cause)
