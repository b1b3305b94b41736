"""Snapshot ingestion.

Turns a full mission snapshot into the same HUD and timer messages the
push channel delivers, so both paths go through identical merge rules.
"""

from __future__ import annotations

from missionsync.clock import parse_instant
from missionsync.models.hud import HudMessage
from missionsync.models.snapshot import MissionSnapshot
from missionsync.models.timer import TimerMessage


def snapshot_timestamp(snapshot: MissionSnapshot, fallback_ts: int) -> int:
    """Ordering key for messages derived from *snapshot*.

    Uses the snapshot's ``server_now`` when it parses, otherwise
    *fallback_ts* (a local clock read). The fallback is in the client's
    clock domain while push ``ts`` values are server time, so with a
    client clock running ahead, push HUD messages are dropped as stale
    until server time passes that local read. Servers are expected
    to always send ``server_now``.
    """
    server_now = parse_instant(snapshot.server_now)
    return server_now if server_now is not None else fallback_ts


def snapshot_to_messages(
    snapshot: MissionSnapshot,
    *,
    fallback_ts: int,
) -> tuple[HudMessage, list[TimerMessage]]:
    """Build one full-snapshot HUD message and one timer message per active timer."""
    ts = snapshot_timestamp(snapshot, fallback_ts)
    mission_id = snapshot.mission_id or ""
    hud = HudMessage(
        mission_id=mission_id,
        server_timestamp=ts,
        fields=snapshot.hud_fields(),
        is_full_snapshot=True,
    )
    timers = [
        TimerMessage(mission_id=mission_id, server_timestamp=ts, timer=entry) for entry in snapshot.timer_entries()
    ]
    return hud, timers
