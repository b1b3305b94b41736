"""HUD readout state and HUD push message models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from missionsync.models._base import MissionBaseModel

#: Wire key -> HudState field name.
HUD_FIELD_ALIASES: dict[str, str] = {
    "scienceDelta": "science_delta",
    "science_points_delta": "science_delta",
}


class HudState(BaseModel):
    """Point-in-time cockpit readout.

    Instances are immutable; the reconciler produces new copies. Values
    are not validated when produced by a merge, so a malformed field from
    the server is carried through as received.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    fuel: float = 0
    hull: float = 0
    crew: float = 0
    success: float = 0
    science_delta: float = 0
    phase: str = ""

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(cls.model_fields)

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> HudState:
        """Build a state from *fields* only; missing fields take their defaults."""
        known = cls.field_names()
        return cls.model_construct(**{k: v for k, v in fields.items() if k in known})

    def with_fields(self, fields: dict[str, Any]) -> HudState:
        """Return a copy where the fields present in *fields* overwrite."""
        known = self.field_names()
        return self.model_copy(update={k: v for k, v in fields.items() if k in known})


class HudMessage(MissionBaseModel):
    """A HUD delta or full snapshot.

    ``server_timestamp`` is server epoch milliseconds and is the only
    ordering key. ``fields`` holds normalized ``HudState`` field names.
    """

    mission_id: str = ""
    server_timestamp: int = Field(validation_alias="ts")
    fields: dict[str, Any] = Field(default_factory=dict, validation_alias="hud")
    is_full_snapshot: bool = Field(default=False, validation_alias="full")

    @field_validator("fields", mode="before")
    @classmethod
    def _normalize_keys(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {HUD_FIELD_ALIASES.get(key, key): item for key, item in value.items()}

    @field_validator("is_full_snapshot", mode="before")
    @classmethod
    def _none_is_partial(cls, value: Any) -> Any:
        return False if value is None else value
