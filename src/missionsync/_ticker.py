"""asyncio tick loop for a timer engine."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from missionsync.models.timer import TimerDisplayState
from missionsync.state.timer import TimerEngine

_logger = logging.getLogger(__name__)


class TimerTicker:
    """Drive ``engine.tick()`` every interval while the engine is running.

    The loop exits by itself once the engine stops ticking (paused or
    ended); :meth:`ensure_running` restarts it after a message makes the
    engine run again.
    """

    def __init__(
        self,
        engine: TimerEngine,
        on_tick: Callable[[TimerDisplayState], None],
        *,
        interval_ms: int = 100,
    ) -> None:
        self._engine = engine
        self._on_tick = on_tick
        self._interval_s = interval_ms / 1000
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_running(self) -> None:
        if not self._engine.is_ticking or self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._engine.is_ticking:
            await asyncio.sleep(self._interval_s)
            before = self._engine.state
            state = self._engine.tick()
            if state is before:
                continue
            try:
                self._on_tick(state)
            except Exception:
                _logger.debug("Timer tick handler failed", exc_info=True)

    async def stop(self) -> None:
        """Cancel the tick loop. Safe to call when not running."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
