"""Cancellable periodic task handle.

Runs an async callback on a fixed interval inside the current event loop.
A tick is skipped while the previous invocation is still in flight, so a
slow callback never has more than one concurrent run.  The handle must be
stopped explicitly; dropping it does not stop the loop.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger


class PeriodicTask:
    """Fixed-interval runner for an async callback.

    Args:
        callback: Coroutine function invoked once per tick.
        interval: Seconds between ticks.
        name: Label used in log messages.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval: float,
        *,
        name: str = "periodic-task",
    ) -> None:
        if interval <= 0:
            msg = "interval must be positive"
            raise ValueError(msg)
        self._callback = callback
        self._interval = interval
        self._name = name
        self._loop_task: asyncio.Task[None] | None = None
        self._tick_task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        """Whether the loop has been started and not yet stopped."""
        return self._loop_task is not None and not self._stopped

    @property
    def in_flight(self) -> bool:
        """Whether a callback invocation is currently outstanding."""
        return self._tick_task is not None and not self._tick_task.done()

    def start(self) -> None:
        """Start ticking.  Must be called from within a running event loop.

        Raises:
            RuntimeError: If the task was already started or stopped.
        """
        if self._loop_task is not None or self._stopped:
            msg = f"Periodic task {self._name} cannot be restarted"
            raise RuntimeError(msg)
        self._loop_task = asyncio.create_task(self._run(), name=self._name)
        logger.debug("Periodic task {} started (interval={}s)", self._name, self._interval)

    def stop(self) -> None:
        """Stop ticking and cancel any in-flight invocation.

        Safe to call more than once, and safe to call from inside the
        callback itself (the current invocation is allowed to finish).
        """
        if self._stopped:
            return
        self._stopped = True
        current = asyncio.current_task()
        if self._loop_task is not None and self._loop_task is not current:
            self._loop_task.cancel()
        if self._tick_task is not None and self._tick_task is not current:
            self._tick_task.cancel()
        logger.debug("Periodic task {} stopped", self._name)

    async def aclose(self) -> None:
        """Stop ticking and wait until the loop has unwound."""
        self.stop()
        current = asyncio.current_task()
        for task in (self._loop_task, self._tick_task):
            if task is None or task is current:
                continue
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self._interval)
            if self._stopped:
                break
            if self.in_flight:
                logger.debug("Periodic task {}: previous tick still running, skipping", self._name)
                continue
            self._tick_task = asyncio.create_task(self._invoke())

    async def _invoke(self) -> None:
        try:
            await self._callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Periodic task {} tick failed", self._name)
