"""Fallback polling while the push channel is down."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from missionsync.models.snapshot import MissionSnapshot

_logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 5000


class FallbackPoller:
    """Periodically fetch a full snapshot while disconnected.

    The poller is active exactly while the connection flag is ``False``.
    Activation fetches once immediately and then once per interval.
    Deactivation cancels the schedule at once; fetches already in flight
    still deliver their result, since the HUD staleness filter guards
    against regressions. Each fetch runs as its own task so a slow
    request never delays the schedule.

    ``fetch`` returns ``None`` on failure; failures do not change the
    schedule (no backoff).
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[MissionSnapshot | None]],
        on_snapshot: Callable[[MissionSnapshot], None],
        *,
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> None:
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._interval_s = interval_ms / 1000
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def active(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def set_connected(self, connected: bool) -> None:
        """Start polling when disconnected; stop when connected."""
        if connected:
            self._deactivate()
        else:
            self._activate()

    def _activate(self) -> None:
        if self._closed or self.active:
            return
        _logger.info("Starting fallback polling every %.1fs", self._interval_s)
        self._loop_task = asyncio.get_running_loop().create_task(self._run())

    def _deactivate(self) -> None:
        task = self._loop_task
        self._loop_task = None
        if task is None:
            return
        if not task.done():
            _logger.info("Stopping fallback polling")
            task.cancel()

    async def _run(self) -> None:
        while True:
            self._spawn_fetch()
            await asyncio.sleep(self._interval_s)

    def _spawn_fetch(self) -> None:
        task = asyncio.get_running_loop().create_task(self._fetch_once())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _fetch_once(self) -> None:
        try:
            snapshot = await self._fetch()
        except Exception:
            _logger.warning("Fallback poll failed", exc_info=True)
            return
        if snapshot is None:
            _logger.debug("Fallback poll returned no snapshot")
            return
        try:
            self._on_snapshot(snapshot)
        except Exception:
            _logger.warning("Fallback poll result handler failed", exc_info=True)

    async def close(self) -> None:
        """Cancel the schedule and any in-flight fetch. Safe to call repeatedly."""
        self._closed = True
        task = self._loop_task
        self._loop_task = None
        pending = [t for t in (task, *self._inflight) if t is not None and not t.done()]
        for t in pending:
            t.cancel()
        for t in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await t
        self._inflight.clear()
