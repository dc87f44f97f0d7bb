"""Cancellable timers built on asyncio tasks.

``DeferredAction`` runs a coroutine once after a delay and can be
cancelled or pushed back; ``PeriodicTask`` runs a coroutine on a fixed
interval until stopped. Both replace raw ``setTimeout``-style callbacks
so that every pending timer has an owner that can cancel it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

AsyncCallback = Callable[[], Awaitable[None]]


class DeferredAction:
    """A single pending call of ``callback`` after a delay.

    Scheduling again replaces the pending call. The callback may
    reschedule its own action (poll-and-reschedule loops).
    """

    def __init__(self, callback: AsyncCallback, *, name: str = "deferred") -> None:
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, delay: float) -> None:
        """Run the callback after ``delay`` seconds, replacing any pending run."""
        self._cancel_pending()
        self._task = asyncio.create_task(self._run(max(0.0, delay)), name=self._name)

    def reschedule(self, delay: float) -> None:
        self.schedule(delay)

    def cancel(self) -> None:
        self._cancel_pending()
        self._task = None

    async def wait(self) -> None:
        """Wait until the pending run (and any run it schedules) has finished."""
        while self._task is not None and not self._task.done():
            task = self._task
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(task)
            if self._task is task:
                break

    def _cancel_pending(self) -> None:
        task = self._task
        # A callback rescheduling itself must not cancel its own task.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self._callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error in deferred action %s", self._name)


class PeriodicTask:
    """Runs ``callback`` every ``interval`` seconds until stopped."""

    def __init__(
        self, callback: AsyncCallback, interval: float, *, name: str = "periodic"
    ) -> None:
        self._callback = callback
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop(), name=self._name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def cancel(self) -> None:
        """Stop without waiting, for use from synchronous teardown paths."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._callback()
            except Exception:
                logger.exception("Error in periodic task %s", self._name)
