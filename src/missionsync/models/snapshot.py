"""Mission snapshot response model."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, field_validator

from missionsync.models._base import MissionBaseModel
from missionsync.models.timer import TimerData, TimerKind, TimerStatus

#: Legacy deadline keys in ``timers`` -> timer kind.
LEGACY_TIMER_KEYS: dict[str, TimerKind] = {
    "launch_countdown_until": TimerKind.LAUNCH,
    "vote_window_until": TimerKind.BALLOT,
    "choices_open_until": TimerKind.BALLOT,
    "phase_gate_until": TimerKind.PHASE,
}

_HUD_SNAPSHOT_FIELDS: tuple[str, ...] = ("fuel", "hull", "crew", "success", "phase")


class MissionSnapshot(MissionBaseModel):
    """Full mission state as returned by ``GET /api/mission/snapshot``.

    HUD values are kept as received (``None`` means absent). ``timers``
    accepts entries keyed by timer kind (``{"LAUNCH": {"ends_at": ..., "status": ...}}``)
    as well as the legacy ``*_until`` deadline keys.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "missionId": "mission_id",
        "sciencePointsDelta": "science_points_delta",
        "serverNow": "server_now",
    }

    mission_id: str | None = None
    phase: Any = None
    fuel: Any = None
    hull: Any = None
    crew: Any = None
    success: Any = None
    science_points_delta: Any = None
    timers: dict[str, Any] = Field(default_factory=dict)
    server_now: Any = None

    @field_validator("timers", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def hud_fields(self) -> dict[str, Any]:
        """HUD fields present in the snapshot, keyed by ``HudState`` field name."""
        fields = {name: getattr(self, name) for name in _HUD_SNAPSHOT_FIELDS if getattr(self, name) is not None}
        if self.science_points_delta is not None:
            fields["science_delta"] = self.science_points_delta
        return fields

    def timer_entries(self) -> list[TimerData]:
        """Active timers declared by the snapshot.

        ``null`` entries mean "no active timer" and are skipped. When the
        same kind is declared twice, the kind-keyed entry wins over a
        legacy deadline key.
        """
        entries: dict[str, TimerData] = {}
        for key, value in self.timers.items():
            if value is None:
                continue
            legacy_kind = LEGACY_TIMER_KEYS.get(key)
            if legacy_kind is not None:
                entries.setdefault(
                    legacy_kind.value,
                    TimerData(
                        kind=legacy_kind.value,
                        ends_at=value,
                        server_now=self.server_now,
                        status=TimerStatus.RUNNING.value,
                    ),
                )
                continue
            if not isinstance(value, dict):
                continue
            kind = str(value.get("kind") or key).upper()
            entries[kind] = TimerData.model_validate(
                {
                    **value,
                    "kind": kind,
                    "server_now": next(
                        (value[name] for name in ("now", "server_now", "serverNow") if name in value),
                        self.server_now,
                    ),
                    "status": value.get("status") or TimerStatus.RUNNING.value,
                }
            )
        return list(entries.values())
