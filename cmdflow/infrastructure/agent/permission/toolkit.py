"""
Permission-checked I/O surface handed to agents.

Every file and shell operation is checked against the agent's
``AgentPermissions`` before anything touches the filesystem or spawns
a process. File paths are matched relative to the workspace root.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePath

from cmdflow.domain.model.agent import AgentPermissions
from cmdflow.infrastructure.agent.errors import CommandIOError
from cmdflow.infrastructure.agent.permission.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutput:
    """Captured result of a shell command."""

    stdout: str
    stderr: str
    exit_code: int | None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class AgentToolkit:
    """
    File and shell access for a single agent, gated by its permissions.

    Example:
        toolkit = AgentToolkit("code-reviewer", agent.permissions(), Path.cwd())
        source = await toolkit.read_file("src/main.py")
    """

    def __init__(
        self,
        agent_id: str,
        permissions: AgentPermissions,
        workspace_root: Path,
    ) -> None:
        self.agent_id = agent_id
        self.permissions = permissions
        self.workspace_root = Path(os.path.normpath(Path(workspace_root).absolute()))

    def resolve(self, path: str | PurePath) -> tuple[Path, str]:
        """
        Resolve ``path`` against the workspace without touching the disk.

        Args:
            path: Absolute or workspace-relative path

        Returns:
            Tuple of (absolute path, path used for permission matching).
            The matching path is workspace-relative when the file lives
            inside the workspace, absolute otherwise.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.workspace_root / candidate
        absolute = Path(os.path.normpath(candidate))
        try:
            relative = absolute.relative_to(self.workspace_root).as_posix()
        except ValueError:
            relative = absolute.as_posix()
        return absolute, relative

    async def read_file(self, path: str | PurePath) -> str:
        """
        Read a text file.

        Raises:
            PermissionDeniedError: If the permissions do not allow reading ``path``
            CommandIOError: If the file cannot be read
        """
        absolute, relative = self.resolve(path)
        if not self.permissions.can_read_file(relative):
            logger.warning(f"Agent {self.agent_id} denied read of {relative}")
            raise PermissionDeniedError(
                "read", relative, f"Permission denied: cannot read '{relative}'"
            )

        try:
            return await asyncio.to_thread(absolute.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CommandIOError(f"Failed to read file '{relative}': {e}", cause=e) from e

    async def write_file(self, path: str | PurePath, content: str) -> None:
        """
        Write a text file.

        Raises:
            PermissionDeniedError: If the permissions do not allow writing ``path``
            CommandIOError: If the file cannot be written
        """
        absolute, relative = self.resolve(path)
        if not self.permissions.can_write_file(relative):
            logger.warning(f"Agent {self.agent_id} denied write of {relative}")
            raise PermissionDeniedError(
                "write", relative, f"Permission denied: cannot write to '{relative}'"
            )

        try:
            await asyncio.to_thread(absolute.write_text, content, encoding="utf-8")
        except OSError as e:
            raise CommandIOError(f"Failed to write file '{relative}': {e}", cause=e) from e

    async def execute_command(self, cmd: str, args: list[str] | None = None) -> CommandOutput:
        """
        Run a program in the workspace root and capture its output.

        Args:
            cmd: Program to execute (not passed through a shell)
            args: Program arguments

        Returns:
            CommandOutput with decoded stdout/stderr and the exit code

        Raises:
            PermissionDeniedError: If shell execution is not granted
            CommandIOError: If the program cannot be started
        """
        args = list(args or [])
        if not self.permissions.can_execute_shell():
            logger.warning(f"Agent {self.agent_id} denied execution of {cmd}")
            raise PermissionDeniedError(
                "execute", cmd, f"Permission denied: shell execution not allowed for '{cmd}'"
            )

        logger.debug("Agent %s executing %s %s", self.agent_id, cmd, args)
        try:
            process = await asyncio.create_subprocess_exec(
                cmd,
                *args,
                cwd=str(self.workspace_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandIOError(f"Failed to execute '{cmd}': {e}", cause=e) from e

        stdout, stderr = await process.communicate()
        return CommandOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode,
        )
