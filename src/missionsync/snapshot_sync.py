"""One-shot snapshot fetch for cold start and reconnect."""

from __future__ import annotations

import logging

from missionsync._api.snapshot import fetch_snapshot
from missionsync._transport import Transport
from missionsync.exceptions import MissionSyncError
from missionsync.models.snapshot import MissionSnapshot

_logger = logging.getLogger(__name__)


class SnapshotSync:
    """Fetch the authoritative mission snapshot.

    Failures never propagate: they are logged and :meth:`fetch` returns
    ``None`` so the caller keeps its current state and decides whether
    to retry.
    """

    def __init__(self, transport: Transport, mission_id: str) -> None:
        self._transport = transport
        self._mission_id = mission_id

    async def fetch(self) -> MissionSnapshot | None:
        _logger.debug("Fetching snapshot for mission %s", self._mission_id)
        try:
            snapshot = await fetch_snapshot(self._transport, self._mission_id)
        except MissionSyncError as exc:
            _logger.warning("Snapshot fetch failed for mission %s: %s", self._mission_id, exc)
            return None
        _logger.debug(
            "Snapshot received for mission %s phase=%s timers=%s",
            self._mission_id,
            snapshot.phase,
            sorted(snapshot.timers),
        )
        return snapshot
