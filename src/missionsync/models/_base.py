"""Base model for mission wire payloads.

Every wire model inherits from :class:`MissionBaseModel` which provides:

* ``populate_by_name`` so fields can be filled by Python name or wire alias.
* ``extra="ignore"`` so new server fields never break parsing.
* A ``model_validator(mode="before")`` that renames legacy keys listed
  in ``_KEY_ALIASES`` and stashes the original payload in ``raw``.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MissionBaseModel(BaseModel):
    """Base for mission wire models."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """``{"legacy_key": "field_key"}`` pairs applied before validation."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _apply_aliases(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        working = dict(values)
        for old_key, new_key in cls._KEY_ALIASES.items():
            if old_key in working and new_key not in working:
                working[new_key] = working.pop(old_key)
        if "raw" not in values:
            working["raw"] = dict(values)
        return working
