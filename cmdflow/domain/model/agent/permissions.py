"""Agent capability grants.

Permissions are attached to an agent at construction and never change.
File paths are matched against glob patterns with ``fnmatch``; ``*``
crosses directory separators, and a leading ``**/`` also matches a path
at the workspace root.
"""

import fnmatch
from dataclasses import dataclass, field
from pathlib import PurePath


@dataclass(frozen=True)
class NoAccess:
    """No file access at all."""


@dataclass(frozen=True)
class ReadOnly:
    """Any file may be read, none written."""


@dataclass(frozen=True)
class ReadWrite:
    """
    Pattern-gated read/write access.

    Attributes:
        allow_patterns: Globs a written path must match
        deny_patterns: Globs that block reads and writes
    """

    allow_patterns: tuple[str, ...] = ()
    deny_patterns: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "allow_patterns", tuple(self.allow_patterns))
        object.__setattr__(self, "deny_patterns", tuple(self.deny_patterns))


FileAccessPolicy = NoAccess | ReadOnly | ReadWrite


def _normalize(path: str | PurePath) -> str:
    text = PurePath(path).as_posix()
    if text.startswith("./"):
        text = text[2:]
    return text


def matches_pattern(path: str | PurePath, pattern: str) -> bool:
    """Check whether ``path`` matches the glob ``pattern``."""
    if pattern in ("*", "**"):
        return True
    path_str = _normalize(path)
    if fnmatch.fnmatchcase(path_str, pattern):
        return True
    # "**/x" also matches "x" at the root
    while pattern.startswith("**/"):
        pattern = pattern[3:]
        if fnmatch.fnmatchcase(path_str, pattern):
            return True
    return False


def matches_any(path: str | PurePath, patterns: tuple[str, ...] | list[str]) -> bool:
    return any(matches_pattern(path, pattern) for pattern in patterns)


@dataclass(frozen=True, kw_only=True)
class AgentPermissions:
    """
    Capabilities granted to an agent.

    Attributes:
        file_access: File access policy
        shell_execution: Whether shell commands may be run
        network_access: Whether network access is allowed
        allowed_tools: Tool names the agent may use
        max_iterations: Upper bound on agent iterations
        can_delegate: Whether the agent may hand work to other agents
    """

    file_access: FileAccessPolicy = field(default_factory=NoAccess)
    shell_execution: bool = False
    network_access: bool = False
    allowed_tools: tuple[str, ...] = ()
    max_iterations: int = 5
    can_delegate: bool = False

    def __post_init__(self):
        object.__setattr__(self, "allowed_tools", tuple(self.allowed_tools))
        if self.max_iterations < 0:
            raise ValueError("max_iterations cannot be negative")

    def can_read_file(self, path: str | PurePath) -> bool:
        """
        Check whether ``path`` may be read.

        Args:
            path: Workspace-relative path

        Returns:
            True if the read is allowed
        """
        match self.file_access:
            case NoAccess():
                return False
            case ReadOnly():
                return True
            case ReadWrite(deny_patterns=deny):
                return not matches_any(path, deny)
        return False

    def can_write_file(self, path: str | PurePath) -> bool:
        """
        Check whether ``path`` may be written.

        Deny patterns are checked first, then at least one allow pattern
        has to match.
        """
        match self.file_access:
            case ReadWrite(allow_patterns=allow, deny_patterns=deny):
                if matches_any(path, deny):
                    return False
                return matches_any(path, allow)
        return False

    def can_execute_shell(self) -> bool:
        return self.shell_execution

    def has_tool_access(self, tool_name: str) -> bool:
        """Check if the agent can use a specific tool."""
        if "*" in self.allowed_tools:
            return True
        return tool_name in self.allowed_tools
