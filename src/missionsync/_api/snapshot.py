"""Mission snapshot endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from missionsync._transport import SNAPSHOT_ENDPOINT, Transport
from missionsync.exceptions import MissionSyncPayloadError
from missionsync.models.snapshot import MissionSnapshot


def _unwrap(body: dict[str, Any]) -> dict[str, Any]:
    # Some deployments wrap responses in the ``{"ok": true, "data": {...}}`` envelope.
    if body.get("ok") is True and isinstance(body.get("data"), dict):
        return body["data"]
    if body.get("ok") is False:
        raise MissionSyncPayloadError(
            f"Snapshot request rejected: {body.get('error', 'unknown error')}",
            endpoint=SNAPSHOT_ENDPOINT,
        )
    return body


async def fetch_snapshot(transport: Transport, mission_id: str) -> MissionSnapshot:
    """Fetch and validate the full snapshot for *mission_id*.

    Raises
    ------
    MissionSyncTransportError
        The request failed.
    MissionSyncPayloadError
        The body is not a valid snapshot.
    """
    body = await transport.get_json(SNAPSHOT_ENDPOINT, {"mission_id": mission_id})
    try:
        return MissionSnapshot.model_validate(_unwrap(body))
    except ValidationError as exc:
        raise MissionSyncPayloadError(
            f"Invalid snapshot payload: {exc.errors(include_url=False)}",
            endpoint=SNAPSHOT_ENDPOINT,
        ) from exc
