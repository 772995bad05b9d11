"""Cancellable timers and background tasks for the asyncio event loop."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)

# Strong references so fire-and-forget tasks are not garbage collected mid-run
_background_tasks: set[asyncio.Task] = set()


def _log_task_result(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Background task %s failed", task.get_name(),
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def spawn_background(coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
    """Run ``coro`` detached; failures are logged, never raised into the loop."""
    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_log_task_result)
    return task


class Debouncer:
    """Trailing-edge debounce of an async action.

    Each ``trigger()`` restarts the quiet period; the action runs once the
    period elapses with no further trigger. ``cancel()`` drops a pending run
    but leaves an already-started run to finish in the background.
    """

    def __init__(
        self,
        delay: float,
        action: Callable[[], Awaitable[Any]],
        name: str = "debounce",
    ):
        self.delay = delay
        self._action = action
        self.name = name
        self._handle: asyncio.TimerHandle | None = None
        self._running: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return self._running is not None and not self._running.done()

    def trigger(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Cancel the pending run, if any. Returns whether one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self) -> None:
        self._handle = None
        self._running = spawn_background(self._run(), name=self.name)

    async def _run(self) -> None:
        await self._action()

    async def wait_idle(self) -> None:
        """Wait for a started run to finish without propagating its error."""
        if self.running:
            await asyncio.wait({self._running})
