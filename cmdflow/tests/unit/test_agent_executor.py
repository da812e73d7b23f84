"""Unit tests for AgentContextBuilder and AgentCommandExecutor."""

from pathlib import Path

import pytest

from cmdflow.domain.model.agent import (
    AgentPermissions,
    CodeReviewResult,
    ExecutionMode,
    GitContext,
    ReadOnly,
)
from cmdflow.domain.model.command import ArgDefinition, ArgType, CommandMetadata
from cmdflow.infrastructure.agent.commands.agent_context import AgentContextBuilder
from cmdflow.infrastructure.agent.commands.agent_executor import AgentCommandExecutor
from cmdflow.infrastructure.agent.commands.invocation import CommandInvocation
from cmdflow.infrastructure.agent.errors import (
    AgentExecutionError,
    AgentNotFoundError,
    ArgumentError,
    ErrorCategory,
    NoSuitableAgentError,
)
from cmdflow.infrastructure.agent.permission import AgentToolkit, PermissionDeniedError
from cmdflow.infrastructure.agent.routing import AgentRouter
from cmdflow.tests.fakes import FakeAgent


def _metadata(agent_id: str | None = None) -> CommandMetadata:
    return CommandMetadata(
        name="audit",
        description="Audit code",
        agent=True,
        agent_id=agent_id,
        args=[ArgDefinition(name="file"), ArgDefinition(name="focus")],
    )


TEMPLATE = "Audit {{file}} focusing on {{args.focus}}"


@pytest.mark.unit
class TestAgentContextBuilder:
    """Tests for AgentContextBuilder.build_task()."""

    def test_renders_user_intent(self) -> None:
        invocation = CommandInvocation("audit", args={"focus": "auth"}, raw_args=["src/login.py"])

        task = AgentContextBuilder().build_task(invocation, _metadata(), TEMPLATE)

        assert task.context.user_intent == "Audit src/login.py focusing on auth"
        assert task.context.execution_mode is ExecutionMode.INTERACTIVE
        assert task.additional_instructions is None

    def test_extracts_file_paths(self) -> None:
        invocation = CommandInvocation("audit", raw_args=["src/login.py", "security"])

        task = AgentContextBuilder().build_task(invocation, _metadata(), TEMPLATE)

        assert task.context.file_paths == [Path("src/login.py")]

    def test_keeps_git_context(self) -> None:
        git_context = GitContext(diff="+x", branch="main")

        task = AgentContextBuilder().build_task(
            CommandInvocation("audit"), _metadata(), TEMPLATE, git_context
        )

        assert task.context.git_context is git_context

    def test_number_argument_is_validated(self) -> None:
        metadata = CommandMetadata(
            name="audit",
            description="Audit code",
            agent=True,
            args=[ArgDefinition(name="depth", arg_type=ArgType.NUMBER)],
        )

        with pytest.raises(ArgumentError, match="must be a number"):
            AgentContextBuilder().build_task(
                CommandInvocation("audit", args={"depth": "deep"}), metadata, "{{depth}}"
            )

    def test_boolean_argument_is_normalised(self) -> None:
        metadata = CommandMetadata(
            name="audit",
            description="Audit code",
            agent=True,
            args=[ArgDefinition(name="strict", arg_type=ArgType.BOOLEAN)],
        )

        task = AgentContextBuilder().build_task(
            CommandInvocation("audit", args={"strict": "yes"}), metadata, "strict={{strict}}"
        )

        assert task.context.user_intent == "strict=true"

    def test_argument_named_args_keeps_mapping(self) -> None:
        metadata = CommandMetadata(
            name="audit",
            description="Audit code",
            agent=True,
            args=[ArgDefinition(name="args"), ArgDefinition(name="focus")],
        )
        invocation = CommandInvocation("audit", args={"args": "-v", "focus": "auth"})

        task = AgentContextBuilder().build_task(
            invocation, metadata, "{{args.args}} {{args.focus}} {{focus}}"
        )

        assert task.context.user_intent == "-v auth auth"

    def test_extract_file_paths_dedups(self) -> None:
        paths = AgentContextBuilder.extract_file_paths(
            {"a": "x.py", "b": "plain", "c": "x.py", "d": "dir/"}
        )

        assert paths == [Path("x.py"), Path("dir/")]


@pytest.mark.unit
class TestAgentCommandExecutor:
    """Tests for agent resolution and execution."""

    async def test_routes_to_best_agent(self, tmp_path: Path) -> None:
        router = AgentRouter()
        reviewer = FakeAgent("reviewer", 0.9, result=CodeReviewResult())
        router.register_agent(reviewer)
        router.register_agent(FakeAgent("other", 0.7))
        executor = AgentCommandExecutor(router)

        result = await executor.execute_agent_command(
            CommandInvocation("audit", raw_args=["a.py"]), _metadata(), TEMPLATE, None, tmp_path
        )

        assert isinstance(result, CodeReviewResult)
        assert len(reviewer.tasks) == 1
        assert reviewer.toolkits[0].agent_id == "reviewer"
        assert reviewer.toolkits[0].workspace_root == tmp_path

    async def test_explicit_agent_id_bypasses_threshold(self, tmp_path: Path) -> None:
        router = AgentRouter(activation_threshold=0.9)
        security = FakeAgent("security", 0.1)
        router.register_agent(security)
        router.register_agent(FakeAgent("reviewer", 0.95))
        executor = AgentCommandExecutor(router)

        await executor.execute_agent_command(
            CommandInvocation("audit"), _metadata("security"), TEMPLATE, None, tmp_path
        )

        assert len(security.tasks) == 1

    async def test_unknown_agent_id(self, tmp_path: Path) -> None:
        executor = AgentCommandExecutor(AgentRouter())

        with pytest.raises(AgentNotFoundError) as exc_info:
            await executor.execute_agent_command(
                CommandInvocation("audit"), _metadata("ghost"), TEMPLATE, None, tmp_path
            )

        assert exc_info.value.agent_id == "ghost"

    async def test_no_suitable_agent(self, tmp_path: Path) -> None:
        router = AgentRouter()
        router.register_agent(FakeAgent("reviewer", 0.5))
        executor = AgentCommandExecutor(router)

        with pytest.raises(NoSuitableAgentError) as exc_info:
            await executor.execute_agent_command(
                CommandInvocation("audit"), _metadata(), TEMPLATE, None, tmp_path
            )

        assert exc_info.value.category is ErrorCategory.LOOKUP

    async def test_agent_failure_is_wrapped(self, tmp_path: Path) -> None:
        router = AgentRouter()
        router.register_agent(FakeAgent("flaky", 1.0, error=RuntimeError("boom")))
        executor = AgentCommandExecutor(router)

        with pytest.raises(AgentExecutionError) as exc_info:
            await executor.execute_agent_command(
                CommandInvocation("audit"), _metadata(), TEMPLATE, None, tmp_path
            )

        assert exc_info.value.agent_id == "flaky"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert "boom" in str(exc_info.value)

    async def test_permission_error_propagates_unchanged(self, tmp_path: Path) -> None:
        router = AgentRouter()
        denied = PermissionDeniedError("write", "a.py")
        router.register_agent(FakeAgent("writer", 1.0, error=denied))
        executor = AgentCommandExecutor(router)

        with pytest.raises(PermissionDeniedError):
            await executor.execute_agent_command(
                CommandInvocation("audit"), _metadata(), TEMPLATE, None, tmp_path
            )

    async def test_toolkit_uses_agent_permissions(self, tmp_path: Path) -> None:
        router = AgentRouter()
        permissions = AgentPermissions(file_access=ReadOnly())
        reader = FakeAgent("reader", 1.0, permissions=permissions)
        router.register_agent(reader)
        executor = AgentCommandExecutor(router)

        await executor.execute_agent_command(
            CommandInvocation("audit"), _metadata(), TEMPLATE, None, tmp_path
        )

        assert reader.toolkits[0].permissions is permissions

    async def test_fixed_toolkit(self, tmp_path: Path) -> None:
        router = AgentRouter()
        agent = FakeAgent("reader", 1.0)
        router.register_agent(agent)
        toolkit = AgentToolkit("shared", AgentPermissions(), tmp_path)
        executor = AgentCommandExecutor(router, toolkit=toolkit)

        await executor.execute_agent_command(
            CommandInvocation("audit"), _metadata(), TEMPLATE, None, tmp_path
        )

        assert agent.toolkits[0] is toolkit
