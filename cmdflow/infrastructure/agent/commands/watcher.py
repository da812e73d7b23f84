"""Debounced filesystem watcher that keeps the command registry in sync.

A watchdog observer thread watches the commands directory recursively
and hands relevant events to the event loop. A single background task
records each event in a ``ReloadDebouncer`` and sweeps it on every
tick; once the directory has been quiet for the debounce window, one
``registry.reload()`` runs no matter how many paths changed.

Usage::

    async with CommandWatcher(commands_dir, registry) as watcher:
        ...  # registry follows file changes until the block exits
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from cmdflow.infrastructure.agent.errors import WatcherSetupError

if TYPE_CHECKING:
    from cmdflow.infrastructure.agent.commands.registry import CommandRegistry

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_TICK_SECONDS = 0.05
# A continuously changing path cannot postpone a reload past this many windows.
MAX_WAIT_WINDOWS = 10

_RELEVANT_EVENT_TYPES = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED}
)


class ReloadDebouncer:
    """Pending-reload set keyed by path.

    Each event stamps its path with the current time. A sweep drains the
    whole set and reports that a reload is due once the most recent
    event is at least ``window`` seconds old, so a burst across many
    paths yields a single reload. A reload is forced once the set has
    been pending for ``max_wait`` seconds, so one file rewritten faster
    than the window does not hold back the others indefinitely.
    """

    def __init__(
        self,
        window: float,
        clock: Callable[[], float] = time.monotonic,
        max_wait: float | None = None,
    ) -> None:
        if window <= 0:
            raise ValueError("Debounce window must be positive")
        if max_wait is None:
            max_wait = window * MAX_WAIT_WINDOWS
        if max_wait < window:
            raise ValueError("Maximum wait cannot be shorter than the debounce window")
        self.window = window
        self.max_wait = max_wait
        self._clock = clock
        self._pending: dict[str, float] = {}
        self._pending_since: float | None = None

    @property
    def pending(self) -> dict[str, float]:
        return dict(self._pending)

    def record(self, path: str, now: float | None = None) -> None:
        """Stamp ``path`` with ``now``, refreshing an existing entry."""
        stamp = self._clock() if now is None else now
        if not self._pending:
            self._pending_since = stamp
        self._pending[path] = stamp

    def sweep(self, now: float | None = None) -> bool:
        """Drain the pending set once it is idle or overdue.

        The set is idle when no path has been stamped for ``window``
        seconds and overdue once it has been pending for ``max_wait``.

        Returns:
            True if a reload should run for this sweep.
        """
        if not self._pending:
            return False
        now = self._clock() if now is None else now
        idle = now - max(self._pending.values()) >= self.window
        overdue = self._pending_since is not None and now - self._pending_since >= self.max_wait
        if not (idle or overdue):
            return False
        if overdue and not idle:
            logger.debug(
                "Forcing reload of %d pending path(s) after %.2fs",
                len(self._pending),
                self.max_wait,
            )
        self.clear()
        return True

    def clear(self) -> None:
        self._pending.clear()
        self._pending_since = None


class _CommandEventHandler(FileSystemEventHandler):
    """Forwards relevant watchdog events from the observer thread to the loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[str],
        is_relevant: Callable[[FileSystemEvent], bool],
    ) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue
        self._is_relevant = is_relevant

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self._is_relevant(event):
            return
        path = os.fsdecode(getattr(event, "dest_path", "") or event.src_path)
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, path)
        except RuntimeError:
            # Loop already closed while the observer was shutting down.
            logger.debug("Dropped filesystem event for %s after loop shutdown", path)


class CommandWatcher:
    """Watches the commands directory and reloads the registry on change."""

    def __init__(
        self,
        commands_dir: Path,
        registry: CommandRegistry,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        tick: float = DEFAULT_TICK_SECONDS,
        extension: str = ".md",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize CommandWatcher.

        Args:
            commands_dir: Directory to watch (recursively).
            registry: Registry reloaded after changes settle.
            debounce: Quiet period in seconds before a reload.
            tick: Sweep interval in seconds; must be below ``debounce``.
            extension: Only files with this suffix are considered.
            clock: Monotonic clock, injectable for tests.
        """
        if tick <= 0 or tick >= debounce:
            raise ValueError("Tick interval must be positive and smaller than the debounce window")
        self.commands_dir = Path(commands_dir)
        self.registry = registry
        self.tick = tick
        self.extension = extension
        self._debouncer = ReloadDebouncer(debounce, clock=clock)
        self._events: asyncio.Queue[str] | None = None
        self._shutdown: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self._observer: Observer | None = None
        self._reload_count = 0

    @property
    def debounce(self) -> float:
        return self._debouncer.window

    @property
    def reload_count(self) -> int:
        """Number of reloads triggered since start."""
        return self._reload_count

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_command_file(self, path: str | bytes) -> bool:
        return os.fsdecode(path).endswith(self.extension)

    def is_relevant_event(self, event: FileSystemEvent) -> bool:
        """Check whether an event should count towards a reload.

        Only create, modify, delete and move events on files with the
        command extension pass; access, open and close events and
        directory events are dropped.
        """
        if event.event_type not in _RELEVANT_EVENT_TYPES or event.is_directory:
            return False
        if self.is_command_file(event.src_path):
            return True
        dest_path = getattr(event, "dest_path", "")
        return bool(dest_path) and self.is_command_file(dest_path)

    async def start(self) -> None:
        """Start watching.

        Raises:
            WatcherSetupError: If the directory is missing or cannot be watched.
        """
        if self.running:
            return
        if not self.commands_dir.is_dir():
            raise WatcherSetupError(self.commands_dir)

        loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        self._shutdown = asyncio.Event()
        self._reload_count = 0

        handler = _CommandEventHandler(loop, self._events, self.is_relevant_event)
        observer = Observer()
        try:
            observer.schedule(handler, str(self.commands_dir), recursive=True)
            observer.start()
        except OSError as e:
            raise WatcherSetupError(self.commands_dir, str(e)) from e
        self._observer = observer

        self._task = asyncio.create_task(self._run(), name="cmdflow-command-watcher")
        logger.info(
            f"Watching {self.commands_dir} for command changes "
            f"(debounce={self.debounce * 1000:.0f}ms, tick={self.tick * 1000:.0f}ms)"
        )

    async def stop(self) -> None:
        """Stop watching. Pending debounce state is discarded."""
        if self._shutdown is not None:
            self._shutdown.set()
        if self._task is not None:
            await self._task
            self._task = None
        if self._observer is not None:
            observer = self._observer
            self._observer = None
            observer.stop()
            await asyncio.to_thread(observer.join)
            logger.info(f"Stopped watching {self.commands_dir}")

    async def __aenter__(self) -> CommandWatcher:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _run(self) -> None:
        assert self._events is not None and self._shutdown is not None
        events = self._events
        next_event = asyncio.ensure_future(events.get())
        shutdown = asyncio.ensure_future(self._shutdown.wait())
        try:
            while True:
                done, _ = await asyncio.wait(
                    {next_event, shutdown},
                    timeout=self.tick,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if shutdown in done:
                    break
                if next_event in done:
                    self._debouncer.record(next_event.result())
                    while not events.empty():
                        self._debouncer.record(events.get_nowait())
                    next_event = asyncio.ensure_future(events.get())
                if self._debouncer.sweep():
                    await self._reload()
        finally:
            next_event.cancel()
            shutdown.cancel()
            self._debouncer.clear()

    async def _reload(self) -> None:
        self._reload_count += 1
        try:
            result = await self.registry.reload()
        except Exception as e:
            logger.error(f"Command reload failed, keeping previous commands: {e}", exc_info=True)
            return
        logger.info(
            f"Reloaded commands after file changes: {len(self.registry)} available",
            extra={"errors": len(result.errors)},
        )
