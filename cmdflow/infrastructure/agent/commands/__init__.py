"""Slash command system.

Parses ``/name args`` invocations, loads command definitions from
markdown files, expands their templates, and routes agent-backed
commands to a registered agent.
"""

from cmdflow.infrastructure.agent.commands.agent_context import AgentContextBuilder
from cmdflow.infrastructure.agent.commands.agent_executor import (
    AgentCommandExecutor,
    default_toolkit_factory,
)
from cmdflow.infrastructure.agent.commands.args import ArgumentMapper
from cmdflow.infrastructure.agent.commands.builtins import register_builtin_commands
from cmdflow.infrastructure.agent.commands.context import (
    CommandContext,
    ConversationContext,
    MessageSummary,
)
from cmdflow.infrastructure.agent.commands.executor import CommandExecutor, ExecutionContext
from cmdflow.infrastructure.agent.commands.expander import TemplateExpander
from cmdflow.infrastructure.agent.commands.formatter import AgentResultFormatter, OutputFormat
from cmdflow.infrastructure.agent.commands.integration import (
    CommandInterceptor,
    ImageItem,
    InputItem,
    TextItem,
    collect_safe_env_vars,
    detect_slash_command,
    execute_slash_command,
    replace_with_expanded_prompt,
)
from cmdflow.infrastructure.agent.commands.invocation import CommandInvocation, InvocationParser
from cmdflow.infrastructure.agent.commands.loader import CommandLoadResult, UserCommandLoader
from cmdflow.infrastructure.agent.commands.markdown_parser import (
    CommandMarkdownParser,
    ParsedCommand,
)
from cmdflow.infrastructure.agent.commands.registry import CommandRegistry
from cmdflow.infrastructure.agent.commands.watcher import CommandWatcher, ReloadDebouncer

__all__ = [
    "AgentCommandExecutor",
    "AgentContextBuilder",
    "AgentResultFormatter",
    "ArgumentMapper",
    "CommandContext",
    "CommandExecutor",
    "CommandInterceptor",
    "CommandInvocation",
    "CommandLoadResult",
    "CommandMarkdownParser",
    "CommandRegistry",
    "CommandWatcher",
    "ConversationContext",
    "ExecutionContext",
    "ImageItem",
    "InputItem",
    "InvocationParser",
    "MessageSummary",
    "OutputFormat",
    "ParsedCommand",
    "ReloadDebouncer",
    "TemplateExpander",
    "TextItem",
    "UserCommandLoader",
    "collect_safe_env_vars",
    "default_toolkit_factory",
    "detect_slash_command",
    "execute_slash_command",
    "register_builtin_commands",
    "replace_with_expanded_prompt",
]
