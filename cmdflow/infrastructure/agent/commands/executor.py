"""Command execution pipeline.

Coordinates a slash command end to end:
1. Look up the command in the registry
2. Template commands: map and validate arguments, build a
   ``CommandContext``, expand the template
3. Agent commands: delegate to ``AgentCommandExecutor`` and format the
   structured result

The executor itself only reads from the registry; any side effects come
from the delegated agent through its toolkit.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path

from cmdflow.domain.model.agent import GitContext
from cmdflow.domain.model.command import AgentCommand, TemplateCommand
from cmdflow.infrastructure.agent.commands.agent_executor import AgentCommandExecutor
from cmdflow.infrastructure.agent.commands.args import ArgumentMapper
from cmdflow.infrastructure.agent.commands.context import CommandContext, ConversationContext
from cmdflow.infrastructure.agent.commands.expander import TemplateExpander
from cmdflow.infrastructure.agent.commands.formatter import AgentResultFormatter, OutputFormat
from cmdflow.infrastructure.agent.commands.invocation import CommandInvocation
from cmdflow.infrastructure.agent.commands.registry import CommandRegistry
from cmdflow.infrastructure.agent.errors import AgentNotFoundError, CommandNotFoundError

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class ExecutionContext:
    """
    Environment a command runs in.

    Attributes:
        workspace_root: Root directory of the workspace
        git_diff: Diff of the workspace, if collected
        current_files: Files currently in focus
        conversation_context: Recent conversation, if any
        env_vars: Whitelisted environment variables
        git_context: Full version control state for agents, if collected
    """

    workspace_root: Path
    git_diff: str | None = None
    current_files: list[Path] = field(default_factory=list)
    conversation_context: ConversationContext | None = None
    env_vars: dict[str, str] = field(default_factory=dict)
    git_context: GitContext | None = None

    def with_git_diff(self, diff: str | None) -> "ExecutionContext":
        return dataclasses.replace(self, git_diff=diff)

    def with_files(self, files: list[Path]) -> "ExecutionContext":
        return dataclasses.replace(self, current_files=list(files))

    def with_conversation(self, context: ConversationContext | None) -> "ExecutionContext":
        return dataclasses.replace(self, conversation_context=context)

    def with_env_vars(self, env_vars: dict[str, str]) -> "ExecutionContext":
        return dataclasses.replace(self, env_vars=dict(env_vars))

    def with_git_context(self, git_context: GitContext | None) -> "ExecutionContext":
        return dataclasses.replace(self, git_context=git_context)

    def resolve_git_context(self) -> GitContext | None:
        """Git context for agents, derived from the diff when not collected."""
        if self.git_context is not None:
            return self.git_context
        if self.git_diff is not None:
            return GitContext(diff=self.git_diff)
        return None


class CommandExecutor:
    """Executes parsed slash commands against a registry."""

    def __init__(
        self,
        registry: CommandRegistry,
        agent_executor: AgentCommandExecutor | None = None,
        expander: TemplateExpander | None = None,
        output_format: OutputFormat = OutputFormat.MARKDOWN,
    ) -> None:
        self.registry = registry
        self.agent_executor = agent_executor
        self.expander = expander or TemplateExpander()
        self.output_format = output_format

    async def execute(self, invocation: CommandInvocation, exec_context: ExecutionContext) -> str:
        """
        Execute a command invocation.

        Args:
            invocation: Parsed slash command
            exec_context: Workspace, diff, files, env and conversation data

        Returns:
            The expanded prompt, or the formatted agent result

        Raises:
            CommandNotFoundError: If the command is not registered
            ArgumentError: If the arguments do not fit the command
            TemplateExpansionError: If the template fails to render
            AgentNotFoundError: If an agent command cannot reach its agent
            NoSuitableAgentError: If no agent qualifies for an agent command
            AgentExecutionError: If the agent fails
        """
        command = self.registry.get(invocation.command_name)
        if command is None:
            raise CommandNotFoundError(invocation.command_name)

        match command:
            case AgentCommand():
                return await self._execute_agent_command(invocation, command, exec_context)
            case TemplateCommand():
                return self._execute_template_command(invocation, command, exec_context)
        raise TypeError(f"Unsupported command type: {type(command).__name__}")

    async def _execute_agent_command(
        self,
        invocation: CommandInvocation,
        command: AgentCommand,
        exec_context: ExecutionContext,
    ) -> str:
        if self.agent_executor is None:
            raise AgentNotFoundError(command.metadata.agent_id or command.name)

        result = await self.agent_executor.execute_agent_command(
            invocation,
            command.metadata,
            command.template,
            exec_context.resolve_git_context(),
            exec_context.workspace_root,
        )
        return AgentResultFormatter.format(result, self.output_format)

    def _execute_template_command(
        self,
        invocation: CommandInvocation,
        command: TemplateCommand,
        exec_context: ExecutionContext,
    ) -> str:
        mapped_args = ArgumentMapper.map_arguments(invocation, command.metadata)
        mapped_args = ArgumentMapper.validate_and_coerce(mapped_args, command.metadata)

        context = CommandContext(
            args=mapped_args,
            git_diff=exec_context.git_diff,
            files=list(exec_context.current_files),
            workspace_root=exec_context.workspace_root,
            env_vars=dict(exec_context.env_vars),
            conversation_context=exec_context.conversation_context,
        )
        expanded = self.expander.expand(command.template, context)
        logger.debug("Expanded /%s into %d characters", command.name, len(expanded))
        return expanded
