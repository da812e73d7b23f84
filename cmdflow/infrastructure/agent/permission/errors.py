"""Permission errors for agent capability checks."""

from cmdflow.infrastructure.agent.errors import CommandError, ErrorCategory


class PermissionError(CommandError):
    """Base class for permission errors."""

    category = ErrorCategory.PERMISSION


class PermissionDeniedError(PermissionError):
    """Raised when an agent attempts an operation its permissions do not grant."""

    def __init__(self, operation: str, target: str, message: str | None = None) -> None:
        self.operation = operation
        self.target = target
        super().__init__(message or f"Permission denied: {operation} '{target}'")
