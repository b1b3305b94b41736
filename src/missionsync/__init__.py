"""missionsync - Async realtime reconciliation client for live mission state."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("missionsync")
except PackageNotFoundError:
    __version__ = "0+local"
from missionsync.channel import ChannelAdapter, PushCapability, PushHandle, Subscription
from missionsync.client import MissionSync
from missionsync.clock import ManualClock, parse_instant, system_clock
from missionsync.config import MissionSyncConfig, MqttSettings
from missionsync.exceptions import (
    MissionSyncConfigError,
    MissionSyncError,
    MissionSyncPayloadError,
    MissionSyncTransportError,
)
from missionsync.models import (
    HudMessage,
    HudState,
    MissionSnapshot,
    TimerData,
    TimerDisplayState,
    TimerKind,
    TimerMessage,
    TimerStatus,
    ToastMessage,
    ToastSeverity,
)
from missionsync.poller import FallbackPoller
from missionsync.snapshot_sync import SnapshotSync
from missionsync.state.hud import HudReconciler
from missionsync.state.timer import TimerEngine

__all__ = [
    "__version__",
    "ChannelAdapter",
    "FallbackPoller",
    "HudMessage",
    "HudReconciler",
    "HudState",
    "ManualClock",
    "MissionSnapshot",
    "MissionSync",
    "MissionSyncConfig",
    "MissionSyncConfigError",
    "MissionSyncError",
    "MissionSyncPayloadError",
    "MissionSyncTransportError",
    "MqttSettings",
    "PushCapability",
    "PushHandle",
    "SnapshotSync",
    "Subscription",
    "TimerData",
    "TimerDisplayState",
    "TimerEngine",
    "TimerKind",
    "TimerMessage",
    "TimerStatus",
    "ToastMessage",
    "ToastSeverity",
    "parse_instant",
    "system_clock",
]
