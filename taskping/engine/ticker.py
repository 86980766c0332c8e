"""Fixed-interval background ticker."""

import asyncio
import logging
from typing import Awaitable, Callable

from taskping.utils.error_handler import log_tick_error

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class Ticker:
    """Runs a coroutine every `interval` seconds until stopped.

    The next tick is scheduled only after the current one finishes, so ticks
    of the same ticker never overlap. A failing tick is logged and the
    ticker waits for the next one.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[object]],
        first: float = 0,
        sleep: Sleep = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError(f"Ticker interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self.first = first
        self._callback = callback
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()
        self._in_tick = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info(f"{self.name} scheduled (interval: {self.interval}s, first: {self.first}s)")

    async def stop(self) -> None:
        """Stop scheduling ticks; an in-flight tick is allowed to finish."""
        if self._task is None:
            return
        self._stopping.set()
        if not self._in_tick:
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"{self.name} stopped")

    async def run_once(self) -> None:
        """Run a single tick now, logging instead of raising on failure."""
        self._in_tick = True
        try:
            await self._callback()
        except Exception as e:
            log_tick_error(self.name, e)
        finally:
            self._in_tick = False
            self.ticks += 1

    async def _run(self) -> None:
        if self.first:
            await self._sleep(self.first)
        while not self._stopping.is_set():
            await self.run_once()
            if self._stopping.is_set():
                break
            await self._sleep(self.interval)
