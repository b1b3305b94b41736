"""Timer kinds, statuses, timer push messages and display state."""

from __future__ import annotations

import math
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from missionsync.models._base import MissionBaseModel


class TimerKind(StrEnum):
    LAUNCH = "LAUNCH"
    BALLOT = "BALLOT"
    PHASE = "PHASE"


class TimerStatus(StrEnum):
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class TimerData(MissionBaseModel):
    """Timer sub-object of a timer message.

    ``ends_at`` and ``server_now`` are kept as received; the timer
    engine parses them and treats anything unparseable as a no-op event.
    """

    kind: str
    ends_at: Any = Field(default=None, validation_alias=AliasChoices("ends_at", "endsAt"))
    server_now: Any = Field(default=None, validation_alias=AliasChoices("now", "server_now", "serverNow"))
    status: str | None = None


class TimerMessage(MissionBaseModel):
    """Server-declared deadline and status for one timer kind."""

    mission_id: str = ""
    server_timestamp: int = Field(validation_alias="ts")
    timer: TimerData


class TimerDisplayState(BaseModel):
    """Derived countdown state, recomputed on every tick."""

    model_config = ConfigDict(frozen=True)

    kind: TimerKind
    status: TimerStatus = TimerStatus.ENDED
    ends_at: datetime | None = None
    remaining_ms: int = Field(default=0, ge=0)

    @property
    def remaining_seconds(self) -> int:
        return math.ceil(self.remaining_ms / 1000)
