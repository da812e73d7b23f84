"""Command metadata value objects.

Metadata is produced by parsing a command file's frontmatter (or by
declaring a built-in command) and is immutable once constructed. A
reload replaces metadata wholesale rather than mutating it.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

COMMAND_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_command_name(name: str) -> bool:
    """Check whether ``name`` only uses letters, digits, ``-`` and ``_``."""
    return bool(name) and COMMAND_NAME_PATTERN.match(name) is not None


class ArgType(str, Enum):
    """Declared type of a command argument."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    FILE = "file"


class CommandCategory(str, Enum):
    """Grouping category for command listings."""

    ANALYSIS = "analysis"
    REFACTORING = "refactoring"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    CUSTOM = "custom"

    @classmethod
    def from_str(cls, value: str) -> "CommandCategory":
        """Map a frontmatter category string to a category.

        Unknown categories fall back to ``CUSTOM``.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.CUSTOM


@dataclass(frozen=True, kw_only=True)
class ArgDefinition:
    """Declared parameter of a command.

    Attributes:
        name: Parameter name, used as the key in mapped arguments.
        arg_type: Expected value type.
        required: Whether a value must be supplied.
        description: Human-readable description.
        default: Value used when nothing is supplied.
    """

    name: str
    arg_type: ArgType = ArgType.STRING
    required: bool = False
    description: str = ""
    default: str | None = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Argument name cannot be empty")
        if self.required and self.default is not None:
            raise ValueError(
                f"Argument '{self.name}' cannot be both required and have a default value"
            )


@dataclass(frozen=True)
class CommandPermissions:
    """Capabilities a command declares it needs."""

    read_files: bool = False
    write_files: bool = False
    execute_shell: bool = False


@dataclass(frozen=True, kw_only=True)
class CommandMetadata:
    """
    Immutable description of a command.

    Attributes:
        name: Command name as typed after the slash
        description: One-line description
        category: Listing category
        permissions: Declared capability needs
        args: Ordered parameter declarations
        agent: Whether execution is delegated to an agent
        agent_id: Explicit agent to delegate to, if any
        activation_hints: Free-form hints for agent routing
    """

    name: str
    description: str
    category: CommandCategory = CommandCategory.CUSTOM
    permissions: CommandPermissions = field(default_factory=CommandPermissions)
    args: tuple[ArgDefinition, ...] = ()
    agent: bool = False
    agent_id: str | None = None
    activation_hints: tuple[str, ...] = ()

    def __post_init__(self):
        if not is_valid_command_name(self.name):
            raise ValueError(f"Invalid command name '{self.name}'")
        if not self.description:
            raise ValueError("Command description cannot be empty")
        # Accept lists from callers but store tuples.
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "activation_hints", tuple(self.activation_hints))

    def get_arg(self, name: str) -> ArgDefinition | None:
        """Look up a declared argument by name."""
        for arg in self.args:
            if arg.name == name:
                return arg
        return None

    @property
    def arg_names(self) -> list[str]:
        return [arg.name for arg in self.args]
