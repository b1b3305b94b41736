"""Toast notification push message."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field, field_validator

from missionsync.models._base import MissionBaseModel


class ToastSeverity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ToastMessage(MissionBaseModel):
    """Transient notification; forwarded to the toast sink, never stored."""

    mission_id: str = ""
    server_timestamp: int = Field(validation_alias="ts")
    message: str
    severity: ToastSeverity = ToastSeverity.INFO

    @field_validator("severity", mode="before")
    @classmethod
    def _unknown_is_info(cls, value: object) -> object:
        if isinstance(value, str) and value.lower() in ToastSeverity._value2member_map_:
            return value.lower()
        return ToastSeverity.INFO
