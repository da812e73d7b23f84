"""Template rendering context for command expansion."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class MessageSummary:
    """A recent conversation message made available to templates."""

    role: str
    content: str
    timestamp: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


@dataclass
class ConversationContext:
    recent_messages: list[MessageSummary] = field(default_factory=list)
    conversation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "messages": [message.to_dict() for message in self.recent_messages],
        }


@dataclass(kw_only=True)
class CommandContext:
    """
    Everything a template can reference.

    Attributes:
        args: Mapped command arguments
        git_diff: Diff of the workspace, if collected
        files: Files currently in focus
        workspace_root: Root directory of the workspace
        env_vars: Whitelisted environment variables
        conversation_context: Recent conversation, if any
    """

    args: dict[str, str] = field(default_factory=dict)
    git_diff: str | None = None
    files: list[Path] = field(default_factory=list)
    workspace_root: Path = field(default_factory=Path.cwd)
    env_vars: dict[str, str] = field(default_factory=dict)
    conversation_context: ConversationContext | None = None

    def to_template_data(self) -> dict[str, Any]:
        """Build the data tree exposed to templates."""
        data: dict[str, Any] = {
            "args": dict(self.args),
            "git_diff": self.git_diff,
            "files": [str(path) for path in self.files],
            "workspace_root": str(self.workspace_root),
            "env": dict(self.env_vars),
        }
        if self.conversation_context is not None:
            data["conversation"] = self.conversation_context.to_dict()
        return data
