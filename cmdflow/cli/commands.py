#!/usr/bin/env python3
"""
Slash command CLI tool.

Lists, runs and watches slash commands from the commands directory.

Usage:
    python -m cmdflow.cli.commands list [--category analysis]
    python -m cmdflow.cli.commands run "/review depth=deep src/"
    python -m cmdflow.cli.commands watch

Examples:
    # Show every command, built-ins included
    python -m cmdflow.cli.commands list

    # Expand a command without collecting the git diff
    python -m cmdflow.cli.commands run "/explain file=src/main.py" --no-git

    # Reload the registry whenever a command file changes
    python -m cmdflow.cli.commands --commands-dir ./commands watch
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from cmdflow.configuration.config import Settings, get_settings
from cmdflow.domain.model.command import CommandCategory
from cmdflow.infrastructure.agent.commands.agent_executor import AgentCommandExecutor
from cmdflow.infrastructure.agent.commands.builtins import register_builtin_commands
from cmdflow.infrastructure.agent.commands.executor import CommandExecutor, ExecutionContext
from cmdflow.infrastructure.agent.commands.formatter import OutputFormat
from cmdflow.infrastructure.agent.commands.git_utils import get_git_context
from cmdflow.infrastructure.agent.commands.integration import collect_safe_env_vars
from cmdflow.infrastructure.agent.commands.invocation import InvocationParser
from cmdflow.infrastructure.agent.commands.registry import CommandRegistry
from cmdflow.infrastructure.agent.commands.watcher import CommandWatcher
from cmdflow.infrastructure.agent.errors import CommandError
from cmdflow.infrastructure.agent.routing.agent_router import AgentRouter

logger = logging.getLogger(__name__)

_LOG_FORMATS = {
    "text": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "json": '{"time": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", '
    '"message": "%(message)s"}',
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=_LOG_FORMATS[settings.log_format],
    )


async def build_registry(settings: Settings, commands_dir: Path | None = None) -> CommandRegistry:
    """
    Create a registry for the configured commands directory.

    Args:
        settings: Application settings
        commands_dir: Overrides the configured directory

    Returns:
        Loaded registry, with built-ins when enabled
    """
    registry = await CommandRegistry.create(
        commands_dir or settings.resolved_commands_dir,
        extension=settings.command_file_extension,
    )
    if settings.register_builtin_commands:
        await register_builtin_commands(registry)
    for error in registry.last_errors:
        print(f"Warning: {error}", file=sys.stderr)
    return registry


async def list_commands(registry: CommandRegistry, category: str | None = None) -> int:
    if category:
        infos = registry.filter_by_category(CommandCategory.from_str(category))
    else:
        infos = registry.list()

    if not infos:
        print("No commands found")
        return 0

    width = max(len(info.name) for info in infos) + 1
    for info in infos:
        print(f"  /{info.name:<{width}} [{info.category.value}] {info.description}")
    print(f"\n{len(infos)} command(s)")
    return 0


async def run_command(
    registry: CommandRegistry,
    settings: Settings,
    text: str,
    workspace: Path,
    collect_git: bool = True,
) -> int:
    """
    Execute a slash command and print the result.

    Args:
        registry: Loaded command registry
        settings: Application settings
        text: Slash command text
        workspace: Workspace root the command runs in
        collect_git: Whether to collect the git diff of the workspace

    Returns:
        Process exit code
    """
    invocation = InvocationParser.parse(text)

    exec_context = ExecutionContext(workspace_root=workspace).with_env_vars(
        collect_safe_env_vars(settings.env_whitelist_names)
    )
    if collect_git:
        git_context = await get_git_context(workspace)
        if git_context is not None:
            exec_context = exec_context.with_git_diff(git_context.diff).with_git_context(
                git_context
            )
            exec_context = exec_context.with_files(
                [workspace / path for path in git_context.changed_files]
            )

    router = AgentRouter(activation_threshold=settings.agent_activation_threshold)
    executor = CommandExecutor(
        registry,
        agent_executor=AgentCommandExecutor(router),
        output_format=OutputFormat.from_str(settings.agent_output_format),
    )
    print(await executor.execute(invocation, exec_context))
    return 0


async def watch_commands(registry: CommandRegistry, settings: Settings) -> int:
    watcher = CommandWatcher(
        registry.commands_dir,
        registry,
        debounce=settings.watcher_debounce_seconds,
        tick=settings.watcher_tick_seconds,
        extension=settings.command_file_extension,
    )
    print(f"Watching {registry.commands_dir} (Ctrl-C to stop)")
    async with watcher:
        # Runs until cancelled by KeyboardInterrupt in asyncio.run.
        await asyncio.Event().wait()
    return 0


async def run(args: argparse.Namespace, settings: Settings) -> int:
    registry = await build_registry(settings, args.commands_dir)
    if args.action == "list":
        return await list_commands(registry, args.category)
    if args.action == "run":
        return await run_command(
            registry, settings, args.text, args.workspace.resolve(), not args.no_git
        )
    return await watch_commands(registry, settings)


def main():
    parser = argparse.ArgumentParser(
        description="List, run and watch slash commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list --category analysis
  %(prog)s run "/review depth=deep src/"
  %(prog)s --commands-dir ./commands watch
        """,
    )
    parser.add_argument(
        "--commands-dir",
        type=Path,
        default=None,
        help="Commands directory (defaults to CMDFLOW_COMMANDS_DIR)",
    )
    subparsers = parser.add_subparsers(dest="action", required=True)

    list_parser = subparsers.add_parser("list", help="List available commands")
    list_parser.add_argument("--category", help="Only show commands in this category")

    run_parser = subparsers.add_parser("run", help="Execute a slash command")
    run_parser.add_argument("text", help='Slash command, e.g. "/explain file=main.py"')
    run_parser.add_argument(
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Workspace root (defaults to the current directory)",
    )
    run_parser.add_argument(
        "--no-git",
        action="store_true",
        help="Do not collect the git diff of the workspace",
    )

    subparsers.add_parser("watch", help="Reload commands when files change")

    args = parser.parse_args()
    settings = get_settings()
    configure_logging(settings)

    try:
        sys.exit(asyncio.run(run(args, settings)))
    except CommandError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
