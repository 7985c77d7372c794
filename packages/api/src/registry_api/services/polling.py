# This project was developed with assistance from AI tools.
"""Fixed-interval polling whose lifetime is owned by the caller.

Used for consumers that poll the unread-notification count. The task runs
until ``stop()`` or until the ``async with`` block exits; nothing outlives
its owner.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicPoller:
    """Calls ``callback`` immediately and then every ``interval`` seconds."""

    def __init__(self, callback: Callable[[], Awaitable[object]], interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("Poll callback failed; continuing", exc_info=True)
            await asyncio.sleep(self._interval)

    async def __aenter__(self) -> "PeriodicPoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
