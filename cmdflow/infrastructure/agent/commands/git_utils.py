"""Git helpers used to populate command and agent contexts."""

import asyncio
import logging
from pathlib import Path

from cmdflow.domain.model.agent import GitContext
from cmdflow.infrastructure.agent.errors import CommandIOError

logger = logging.getLogger(__name__)


async def _run_git(args: list[str], cwd: Path | None) -> tuple[int, str]:
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=str(cwd) if cwd is not None else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    stdout, _ = await process.communicate()
    return process.returncode or 0, stdout.decode("utf-8", errors="replace")


async def is_git_repo(cwd: Path | None = None) -> bool:
    """Return whether ``cwd`` is inside a git work tree.

    A missing ``git`` binary counts as "not a repository".
    """
    try:
        code, _ = await _run_git(["rev-parse", "--is-inside-work-tree"], cwd)
    except FileNotFoundError:
        logger.debug("git executable not found")
        return False
    return code == 0


async def _git_output(args: list[str], cwd: Path | None) -> str:
    try:
        code, output = await _run_git(args, cwd)
    except OSError as e:
        raise CommandIOError(f"Failed to run git {' '.join(args)}: {e}", cause=e) from e
    # ``git diff`` exits with 1 when differences were found.
    if code not in (0, 1):
        raise CommandIOError(f"git {' '.join(args)} failed with status {code}")
    return output


async def _current_branch(cwd: Path | None) -> str:
    """Name of the checked out branch.

    Works on a branch with no commits yet. A detached HEAD gives
    ``"HEAD"``, the same as ``git rev-parse --abbrev-ref HEAD``.
    """
    try:
        code, output = await _run_git(["symbolic-ref", "--short", "-q", "HEAD"], cwd)
    except OSError as e:
        raise CommandIOError(f"Failed to run git symbolic-ref: {e}", cause=e) from e
    if code == 0:
        return output.strip()
    logger.debug("HEAD is not a symbolic ref (status %d)", code)
    return "HEAD" if code == 1 else ""


async def get_git_diff(cwd: Path | None = None) -> tuple[bool, str]:
    """Collect the unstaged diff of the working tree.

    Args:
        cwd: Directory to run git in, defaults to the process cwd.

    Returns:
        ``(is_repo, diff)``; ``(False, "")`` outside a repository or when
        git is not installed.

    Raises:
        CommandIOError: If git fails for another reason.
    """
    if not await is_git_repo(cwd):
        return False, ""
    return True, await _git_output(["diff"], cwd)


async def get_git_context(cwd: Path | None = None) -> GitContext | None:
    """Collect diff, branch and changed files for agent tasks.

    Returns:
        The git context, or None outside a repository.

    Raises:
        CommandIOError: If git fails inside a repository.
    """
    is_repo, diff = await get_git_diff(cwd)
    if not is_repo:
        return None

    branch = await _current_branch(cwd)
    names = await _git_output(["diff", "--name-only"], cwd)
    changed_files = [Path(line) for line in names.splitlines() if line.strip()]
    return GitContext(diff=diff, branch=branch, changed_files=changed_files)
