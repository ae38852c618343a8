"""
Periodic background jobs.

Runs synchronous callables on a fixed interval inside the event loop's
default executor, so a slow job (e.g. writing a snapshot) never blocks
request handling.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicJob:
    """
    Call `func` every `interval` seconds until stopped.

    Failures are logged and the job keeps running.
    """

    def __init__(self, name: str, interval: float, func: Callable[[], Any]):
        self.name = name
        self.interval = interval
        self._func = func
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Any:
        return await asyncio.to_thread(self._func)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.run_once()
            except Exception:
                logger.exception(f"Background job '{self.name}' failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"job:{self.name}")
        logger.info(f"Started background job '{self.name}' (every {self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Stopped background job '{self.name}'")
