"""Debounced rebuild triggering for the development server.

Saving a file usually produces a burst of filesystem events, and editors that
save several files at once produce more. BuildTrigger collapses each burst
into one rebuild: every notification restarts a quiet-period timer, and the
build only starts once the timer runs out.

All methods run on the asyncio event loop thread. The check of ``building``
and the transition to ``building = True`` happen inside one synchronous
callback, so no other task can interleave between them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import click

DEFAULT_QUIET_PERIOD = 0.2


class DebouncedTimer:
    """Single-shot timer that restarts every time it is armed.

    Attributes:
        delay: Seconds between the last ``arm()`` and the callback.
        callback: Function invoked on the event loop when the timer fires.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        """(Re)start the timer. Must be called from the running loop."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.callback()


class BuildTrigger:
    """Coalesces change notifications into single rebuilds.

    Notifications arriving while a build runs are dropped, not queued: the
    watcher reports any later change again, and dropping keeps a burst of
    edits from piling up a backlog of builds.

    Attributes:
        building: True while a build started by this trigger is running.
    """

    def __init__(
        self,
        run_build: Callable[[frozenset[str]], Awaitable[Any]],
        quiet_period: float = DEFAULT_QUIET_PERIOD,
    ):
        """Initialize the trigger.

        Args:
            run_build: Coroutine function called with the changed paths.
            quiet_period: Seconds of inactivity required before building.
        """
        self._run_build = run_build
        self._timer = DebouncedTimer(quiet_period, self.fire)
        self._changed: set[str] = set()
        self._task: asyncio.Task | None = None
        self.building = False

    @property
    def pending(self) -> frozenset[str]:
        """Paths collected since the timer was last armed."""
        return frozenset(self._changed)

    def notify(self, paths: Iterable[str]) -> None:
        """Record changed paths and restart the quiet period."""
        if self.building:
            click.echo("Build in progress; ignoring change notification.")
            return
        self._changed.update(paths)
        self._timer.arm()

    def fire(self) -> None:
        """Start the build for the collected paths unless one is running.

        Does nothing when no paths were collected.
        """
        if self.building:
            click.echo("Build already in progress; skipping rebuild.")
            return
        self._timer.cancel()
        if not self._changed:
            return
        changed = frozenset(self._changed)
        self._changed.clear()
        self.building = True
        self._task = asyncio.get_running_loop().create_task(self._execute(changed))

    async def _execute(self, changed: frozenset[str]) -> None:
        try:
            await self._run_build(changed)
        finally:
            self.building = False

    async def wait_idle(self) -> None:
        """Wait for the running build, if any, to finish."""
        if self._task is not None:
            await self._task

    def cancel(self) -> None:
        """Cancel the quiet-period timer; a running build is left alone."""
        self._timer.cancel()
        self._changed.clear()
