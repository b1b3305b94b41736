"""HUD reconciler.

This is the only component allowed to merge HUD messages into a
``HudState``.
"""

from __future__ import annotations

import logging

from missionsync.models.hud import HudMessage, HudState
from missionsync.state.events import IngestionSource
from missionsync.state.policy import should_accept_update

_logger = logging.getLogger(__name__)


class HudReconciler:
    """Apply HUD deltas and full snapshots under a staleness filter.

    The reconciler does not own the ``HudState`` it merges into; it
    returns new immutable copies and remembers only the timestamp of the
    last applied message. Given the same sequence of messages it always
    produces the same result.
    """

    def __init__(self) -> None:
        self._last_applied_ts: int | None = None

    @property
    def last_applied_timestamp(self) -> int | None:
        return self._last_applied_ts

    def is_stale(self, message: HudMessage) -> bool:
        return not should_accept_update(
            last_applied_ts=self._last_applied_ts,
            incoming_ts=message.server_timestamp,
        )

    def merge(
        self,
        current: HudState,
        message: HudMessage,
        *,
        source: IngestionSource = IngestionSource.PUSH,
    ) -> HudState:
        """Merge *message* into *current*.

        A message at or before the last applied timestamp is dropped and
        *current* is returned unchanged. A full snapshot replaces every
        field (absent fields reset to their defaults); a partial message
        only overwrites the fields it carries.
        """
        if self.is_stale(message):
            _logger.debug(
                "Dropping stale HUD message source=%s ts=%s last_applied=%s",
                source,
                message.server_timestamp,
                self._last_applied_ts,
            )
            return current

        if message.is_full_snapshot:
            merged = HudState.from_fields(message.fields)
        else:
            merged = current.with_fields(message.fields)

        self._last_applied_ts = message.server_timestamp
        _logger.debug(
            "Applied HUD message source=%s ts=%s full=%s fields=%s",
            source,
            message.server_timestamp,
            message.is_full_snapshot,
            sorted(message.fields),
        )
        return merged
