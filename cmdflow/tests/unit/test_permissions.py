"""Unit tests for AgentPermissions and AgentToolkit."""

import sys
from pathlib import Path

import pytest

from cmdflow.domain.model.agent import (
    AgentPermissions,
    NoAccess,
    ReadOnly,
    ReadWrite,
    matches_pattern,
)
from cmdflow.infrastructure.agent.errors import CommandIOError, ErrorCategory
from cmdflow.infrastructure.agent.permission import AgentToolkit, PermissionDeniedError


@pytest.mark.unit
class TestPatternMatching:
    """Tests for glob matching of workspace paths."""

    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            ("src/main.py", "src/*", True),
            ("src/pkg/main.py", "src/**", True),
            ("src/main.py", "*.py", True),
            ("main.py", "**/*.py", True),
            ("a/b/.env", "**/.env", True),
            (".env", "**/.env", True),
            ("docs/readme.md", "src/*", False),
            ("./src/main.py", "src/*", True),
            ("anything", "*", True),
        ],
    )
    def test_matches(self, path: str, pattern: str, expected: bool) -> None:
        assert matches_pattern(path, pattern) is expected


@pytest.mark.unit
class TestAgentPermissions:
    """Tests for file access policies."""

    def test_default_is_no_access(self) -> None:
        permissions = AgentPermissions()

        assert permissions.can_read_file("a.py") is False
        assert permissions.can_write_file("a.py") is False
        assert permissions.can_execute_shell() is False

    def test_no_access(self) -> None:
        permissions = AgentPermissions(file_access=NoAccess())

        assert permissions.can_read_file("src/main.py") is False

    def test_read_only(self) -> None:
        permissions = AgentPermissions(file_access=ReadOnly())

        assert permissions.can_read_file("src/main.py") is True
        assert permissions.can_write_file("src/main.py") is False

    def test_read_write_allow_and_deny(self) -> None:
        permissions = AgentPermissions(
            file_access=ReadWrite(allow_patterns=["src/**"], deny_patterns=["**/.env"])
        )

        assert permissions.can_write_file("src/main.py") is True
        assert permissions.can_write_file("docs/readme.md") is False
        assert permissions.can_write_file("src/.env") is False

    def test_read_write_deny_blocks_reads(self) -> None:
        permissions = AgentPermissions(
            file_access=ReadWrite(allow_patterns=["src/**"], deny_patterns=["secrets/*"])
        )

        assert permissions.can_read_file("docs/readme.md") is True
        assert permissions.can_read_file("secrets/key.pem") is False

    def test_tool_access(self) -> None:
        assert AgentPermissions(allowed_tools=["grep"]).has_tool_access("grep") is True
        assert AgentPermissions(allowed_tools=["grep"]).has_tool_access("sed") is False
        assert AgentPermissions(allowed_tools=["*"]).has_tool_access("sed") is True

    def test_negative_iterations_rejected(self) -> None:
        with pytest.raises(ValueError):
            AgentPermissions(max_iterations=-1)


@pytest.mark.unit
class TestAgentToolkit:
    """Tests for permission-checked I/O."""

    async def test_read_only_allows_read(self, tmp_path: Path) -> None:
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        toolkit = AgentToolkit("reader", AgentPermissions(file_access=ReadOnly()), tmp_path)

        assert await toolkit.read_file("notes.txt") == "hello"

    async def test_read_only_denies_write(self, tmp_path: Path) -> None:
        toolkit = AgentToolkit("reader", AgentPermissions(file_access=ReadOnly()), tmp_path)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await toolkit.write_file("out.txt", "data")

        assert "out.txt" in str(exc_info.value)
        assert exc_info.value.category is ErrorCategory.PERMISSION
        assert not (tmp_path / "out.txt").exists()

    async def test_no_access_denies_read_before_io(self, tmp_path: Path) -> None:
        toolkit = AgentToolkit("blind", AgentPermissions(), tmp_path)

        with pytest.raises(PermissionDeniedError, match="cannot read 'missing.txt'"):
            await toolkit.read_file("missing.txt")

    async def test_read_write_writes_allowed_path(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        permissions = AgentPermissions(file_access=ReadWrite(allow_patterns=["src/**"]))
        toolkit = AgentToolkit("writer", permissions, tmp_path)

        await toolkit.write_file("src/out.py", "x = 1\n")

        assert (tmp_path / "src" / "out.py").read_text(encoding="utf-8") == "x = 1\n"

    async def test_absolute_path_matched_relative_to_workspace(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        permissions = AgentPermissions(file_access=ReadWrite(allow_patterns=["src/*"]))
        toolkit = AgentToolkit("writer", permissions, tmp_path)

        await toolkit.write_file(tmp_path / "src" / "abs.py", "")

        assert (tmp_path / "src" / "abs.py").exists()

    async def test_parent_traversal_is_normalized(self, tmp_path: Path) -> None:
        permissions = AgentPermissions(file_access=ReadWrite(allow_patterns=["src/**"]))
        toolkit = AgentToolkit("writer", permissions, tmp_path)

        with pytest.raises(PermissionDeniedError):
            await toolkit.write_file("src/../outside.txt", "x")

    async def test_missing_file_is_io_error(self, tmp_path: Path) -> None:
        toolkit = AgentToolkit("reader", AgentPermissions(file_access=ReadOnly()), tmp_path)

        with pytest.raises(CommandIOError):
            await toolkit.read_file("missing.txt")

    async def test_shell_denied(self, tmp_path: Path) -> None:
        toolkit = AgentToolkit("reader", AgentPermissions(file_access=ReadOnly()), tmp_path)

        with pytest.raises(PermissionDeniedError, match="shell execution not allowed"):
            await toolkit.execute_command("ls")

    async def test_shell_runs_in_workspace(self, tmp_path: Path) -> None:
        toolkit = AgentToolkit("runner", AgentPermissions(shell_execution=True), tmp_path)

        output = await toolkit.execute_command(
            sys.executable, ["-c", "import os; print(os.getcwd())"]
        )

        assert output.succeeded
        assert Path(output.stdout.strip()).resolve() == tmp_path.resolve()
