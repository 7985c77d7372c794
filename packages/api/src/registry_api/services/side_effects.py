# This project was developed with assistance from AI tools.
"""Background queue for best-effort side effects.

Work is enqueued as a zero-argument coroutine factory so each retry gets a
fresh coroutine. Task references are held until completion; otherwise the
event loop may garbage-collect a pending task.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..core.config import Settings

logger = logging.getLogger(__name__)

SideEffect = Callable[[], Awaitable[object]]


class SideEffectQueue:
    """Runs side effects as asyncio tasks with bounded exponential backoff."""

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def enqueue(self, name: str, factory: SideEffect) -> asyncio.Task:
        """Schedule ``factory`` on the running loop and return its task."""
        task = asyncio.create_task(self._run(name, factory), name=f"side-effect:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, factory: SideEffect) -> bool:
        for attempt in range(1, self._max_attempts + 1):
            try:
                await factory()
                return True
            except Exception:
                if attempt == self._max_attempts:
                    logger.warning(
                        "Side effect %s failed after %d attempts; giving up",
                        name, attempt, exc_info=True,
                    )
                    return False
                delay = self._base_delay * (2 ** (attempt - 1))
                logger.info(
                    "Side effect %s failed (attempt %d/%d); retrying in %.1fs",
                    name, attempt, self._max_attempts, delay,
                )
                await asyncio.sleep(delay)
        return False

    async def drain(self) -> None:
        """Wait for every outstanding side effect to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_queue: SideEffectQueue | None = None


def init_side_effect_queue(cfg: Settings) -> SideEffectQueue:
    global _queue  # noqa: PLW0603
    _queue = SideEffectQueue(
        max_attempts=cfg.SIDE_EFFECT_MAX_ATTEMPTS,
        base_delay=cfg.SIDE_EFFECT_RETRY_DELAY_SECONDS,
    )
    return _queue


def get_side_effect_queue() -> SideEffectQueue:
    if _queue is None:
        raise RuntimeError("SideEffectQueue not initialised -- call init_side_effect_queue() first")
    return _queue
