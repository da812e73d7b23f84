"""Executes agent-backed commands.

Flow: build a ``Task`` from the invocation, resolve the agent (the
command's explicit ``agent_id`` or the router's best match), run it
through a permission-checked toolkit, and return its structured result.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from cmdflow.domain.model.agent import Agent, AgentResult, GitContext, TaskContext
from cmdflow.domain.model.command import CommandMetadata
from cmdflow.infrastructure.agent.commands.agent_context import AgentContextBuilder
from cmdflow.infrastructure.agent.commands.invocation import CommandInvocation
from cmdflow.infrastructure.agent.errors import (
    AgentExecutionError,
    AgentNotFoundError,
    CommandError,
    NoSuitableAgentError,
)
from cmdflow.infrastructure.agent.permission.toolkit import AgentToolkit
from cmdflow.infrastructure.agent.routing.agent_router import AgentRouter

logger = logging.getLogger(__name__)

ToolkitFactory = Callable[[Agent, Path], AgentToolkit]


def default_toolkit_factory(agent: Agent, workspace_root: Path) -> AgentToolkit:
    """Build a toolkit scoped to the agent's own permissions."""
    return AgentToolkit(agent.id, agent.permissions(), workspace_root)


class AgentCommandExecutor:
    """Routes agent-backed commands to an agent and runs it."""

    def __init__(
        self,
        router: AgentRouter,
        toolkit: AgentToolkit | None = None,
        toolkit_factory: ToolkitFactory = default_toolkit_factory,
        context_builder: AgentContextBuilder | None = None,
    ) -> None:
        """
        Args:
            router: Router holding the available agents
            toolkit: Fixed toolkit used for every agent, if given
            toolkit_factory: Builds a per-agent toolkit when no fixed toolkit is given
            context_builder: Task builder, defaults to a fresh AgentContextBuilder
        """
        self.router = router
        self._toolkit = toolkit
        self._toolkit_factory = toolkit_factory
        self.context_builder = context_builder or AgentContextBuilder()

    def resolve_agent(self, metadata: CommandMetadata, task_context: TaskContext) -> Agent:
        """
        Find the agent for a command.

        Raises:
            AgentNotFoundError: If an explicit agent_id is not registered
            NoSuitableAgentError: If no agent reaches the activation threshold
        """
        if metadata.agent_id:
            agent = self.router.get_agent(metadata.agent_id)
            if agent is None:
                raise AgentNotFoundError(metadata.agent_id)
            return agent

        agent = self.router.select_agent(task_context)
        if agent is None:
            raise NoSuitableAgentError(metadata.name)
        return agent

    async def execute_agent_command(
        self,
        invocation: CommandInvocation,
        metadata: CommandMetadata,
        template: str,
        git_context: GitContext | None,
        workspace_root: Path,
    ) -> AgentResult:
        """
        Run an agent-backed command.

        Returns:
            The agent's structured result

        Raises:
            ArgumentError: If the arguments do not fit the command
            AgentNotFoundError: If the configured agent is not registered
            NoSuitableAgentError: If no agent qualifies
            AgentExecutionError: If the agent itself fails
        """
        task = self.context_builder.build_task(
            invocation, metadata, template, git_context, workspace_root
        )
        agent = self.resolve_agent(metadata, task.context)
        toolkit = self._toolkit or self._toolkit_factory(agent, workspace_root)

        logger.info(f"Executing /{metadata.name} with agent '{agent.id}'")
        try:
            return await agent.execute(task, toolkit)
        except CommandError:
            # Permission and I/O errors from the toolkit keep their own type.
            raise
        except Exception as e:
            logger.error(f"Agent '{agent.id}' failed on /{metadata.name}: {e}", exc_info=True)
            raise AgentExecutionError(agent.id, e) from e
