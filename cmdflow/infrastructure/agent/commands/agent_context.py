"""Builds agent tasks from command invocations."""

import logging
from pathlib import Path

from cmdflow.domain.model.agent import ExecutionMode, GitContext, Task, TaskContext
from cmdflow.domain.model.command import CommandMetadata
from cmdflow.infrastructure.agent.commands.args import ArgumentMapper
from cmdflow.infrastructure.agent.commands.expander import TemplateExpander
from cmdflow.infrastructure.agent.commands.invocation import CommandInvocation

logger = logging.getLogger(__name__)


class AgentContextBuilder:
    """Turns an invocation of an agent-backed command into a ``Task``."""

    def __init__(self, expander: TemplateExpander | None = None) -> None:
        self.expander = expander or TemplateExpander()

    def build_task(
        self,
        invocation: CommandInvocation,
        metadata: CommandMetadata,
        template: str,
        git_context: GitContext | None = None,
        workspace_root: Path | None = None,
    ) -> Task:
        """
        Build the task handed to the routed agent.

        The template is rendered into the user intent with the mapped and
        type-checked arguments available both at the top level
        (``{{file}}``) and under ``args`` (``{{args.file}}``). Argument
        values that look like paths become the task's candidate files.

        Args:
            invocation: Parsed invocation
            metadata: Metadata of the agent-backed command
            template: Command template
            git_context: Optional version control state
            workspace_root: Workspace the command runs in

        Returns:
            Task in interactive mode

        Raises:
            ArgumentError: If the arguments do not fit the command
            TemplateExpansionError: If the template fails to render
        """
        mapped_args = ArgumentMapper.map_arguments(invocation, metadata)
        mapped_args = ArgumentMapper.validate_and_coerce(mapped_args, metadata)
        # ``args`` always names the whole mapping; an argument called ``args``
        # stays reachable as ``{{args.args}}``.
        data: dict[str, object] = {
            name: value for name, value in mapped_args.items() if name != "args"
        }
        data["args"] = mapped_args
        if workspace_root is not None:
            data.setdefault("workspace_root", str(workspace_root))
        user_intent = self.expander.render(template, data)

        file_paths = self.extract_file_paths(mapped_args)
        logger.debug(
            "Built task for /%s with %d candidate files", metadata.name, len(file_paths)
        )
        return Task(
            context=TaskContext(
                file_paths=file_paths,
                file_contents=None,
                git_context=git_context,
                execution_mode=ExecutionMode.INTERACTIVE,
                user_intent=user_intent,
            ),
            additional_instructions=None,
        )

    @staticmethod
    def extract_file_paths(args: dict[str, str]) -> list[Path]:
        """Pick argument values containing ``/`` or ``.``, in argument order."""
        paths: list[Path] = []
        seen: set[str] = set()
        for value in args.values():
            if ("/" in value or "." in value) and value not in seen:
                seen.add(value)
                paths.append(Path(value))
        return paths
