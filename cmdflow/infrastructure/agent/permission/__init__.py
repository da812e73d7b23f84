"""Permission enforcement for agent file and shell access."""

from .errors import PermissionDeniedError, PermissionError
from .toolkit import AgentToolkit, CommandOutput

__all__ = [
    "AgentToolkit",
    "CommandOutput",
    "PermissionDeniedError",
    "PermissionError",
]
