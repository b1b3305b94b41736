"""Custom exception hierarchy for missionsync."""

from __future__ import annotations


class MissionSyncError(Exception):
    """Base exception for all missionsync errors."""


class MissionSyncConfigError(MissionSyncError):
    """Invalid or missing configuration."""


class MissionSyncTransportError(MissionSyncError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MissionSyncPayloadError(MissionSyncError):
    """Response body did not match the expected snapshot shape.

    Snapshot Sync and the fallback poller catch this, log it and keep
    the last known good state.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)
