"""Slash command integration for the chat input pipeline.

Bridges incoming user input and the command system: detects a slash
command among the input items, executes it, and swaps the command text
for the expanded prompt before the input reaches the model.
"""

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from cmdflow.configuration.config import DEFAULT_ENV_WHITELIST
from cmdflow.infrastructure.agent.commands.agent_executor import AgentCommandExecutor
from cmdflow.infrastructure.agent.commands.context import ConversationContext
from cmdflow.infrastructure.agent.commands.executor import CommandExecutor, ExecutionContext
from cmdflow.infrastructure.agent.commands.formatter import OutputFormat
from cmdflow.infrastructure.agent.commands.invocation import InvocationParser
from cmdflow.infrastructure.agent.commands.registry import CommandRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextItem:
    text: str


@dataclass(frozen=True)
class ImageItem:
    image_url: str


InputItem = TextItem | ImageItem


def detect_slash_command(items: Iterable[InputItem]) -> str | None:
    """Return the first text item that is a slash command, trimmed.

    A lone ``/`` is not a command, and ``/`` must be the first
    non-whitespace character of the item.
    """
    for item in items:
        if isinstance(item, TextItem):
            trimmed = item.text.strip()
            if trimmed.startswith("/") and len(trimmed) > 1:
                return trimmed
    return None


def replace_with_expanded_prompt(items: Iterable[InputItem], prompt: str) -> list[InputItem]:
    """Replace the first slash command text item with ``prompt``.

    All other items keep their position and content.
    """
    result: list[InputItem] = []
    replaced = False
    for item in items:
        if not replaced and isinstance(item, TextItem) and item.text.strip().startswith("/"):
            result.append(TextItem(text=prompt))
            replaced = True
        else:
            result.append(item)
    return result


def collect_safe_env_vars(
    whitelist: Iterable[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Pick whitelisted environment variables for templates.

    Args:
        whitelist: Variable names to expose; defaults to the built-in list.
        environ: Source environment; defaults to ``os.environ``.

    Returns:
        The whitelisted variables that are set.
    """
    names = whitelist if whitelist is not None else DEFAULT_ENV_WHITELIST.split(",")
    source = environ if environ is not None else os.environ
    return {name: source[name] for name in (n.strip() for n in names) if name and name in source}


async def execute_slash_command(
    text: str,
    registry: CommandRegistry,
    workspace_root: Path,
    git_diff: str | None = None,
    current_files: list[Path] | None = None,
    conversation_context: ConversationContext | None = None,
    env_vars: dict[str, str] | None = None,
    agent_executor: AgentCommandExecutor | None = None,
    output_format: OutputFormat = OutputFormat.MARKDOWN,
) -> str:
    """Parse and execute a slash command in one call.

    Returns:
        The expanded prompt (or formatted agent result).

    Raises:
        CommandError: Any parse, argument, lookup, template or agent error.
    """
    invocation = InvocationParser.parse(text)
    exec_context = (
        ExecutionContext(workspace_root=workspace_root)
        .with_git_diff(git_diff)
        .with_files(current_files or [])
        .with_conversation(conversation_context)
        .with_env_vars(env_vars or {})
    )
    executor = CommandExecutor(registry, agent_executor=agent_executor, output_format=output_format)
    return await executor.execute(invocation, exec_context)


class CommandInterceptor:
    """Intercepts slash commands before they reach the model.

    Usage::

        interceptor = CommandInterceptor(executor)
        prompt = await interceptor.try_intercept(message, exec_context)
        if prompt is not None:
            # Send the expanded prompt instead of the raw message
            ...
        else:
            # Not a command; pass the message through unchanged
            ...
    """

    def __init__(self, executor: CommandExecutor) -> None:
        super().__init__()
        self._executor = executor

    async def try_intercept(self, message: str, exec_context: ExecutionContext) -> str | None:
        """Try to handle a message as a slash command.

        Args:
            message: Raw user input.
            exec_context: Context the command runs in.

        Returns:
            The expanded prompt, or None if the message is not a slash
            command.

        Raises:
            CommandError: If the message is a command that fails.
        """
        if not InvocationParser.is_slash_command(message):
            return None

        invocation = InvocationParser.parse(message)
        logger.info("Intercepted slash command /%s", invocation.command_name)
        return await self._executor.execute(invocation, exec_context)
