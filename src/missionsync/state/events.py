"""Ingestion sources.

Every path that produces HUD or timer updates is tagged with one of
these so logs show where an applied or dropped update came from.
"""

from __future__ import annotations

from enum import StrEnum


class IngestionSource(StrEnum):
    PUSH = "push"
    POLL = "poll"
    SNAPSHOT = "snapshot"
    OPTIMISTIC = "optimistic"
