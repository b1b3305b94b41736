"""Pydantic models for mission wire payloads and client state."""

from missionsync.models.hud import HudMessage, HudState
from missionsync.models.snapshot import MissionSnapshot
from missionsync.models.timer import TimerData, TimerDisplayState, TimerKind, TimerMessage, TimerStatus
from missionsync.models.toast import ToastMessage, ToastSeverity

__all__ = [
    "HudMessage",
    "HudState",
    "MissionSnapshot",
    "TimerData",
    "TimerDisplayState",
    "TimerKind",
    "TimerMessage",
    "TimerStatus",
    "ToastMessage",
    "ToastSeverity",
]
