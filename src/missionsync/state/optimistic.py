"""Two-phase optimistic HUD updates.

Phase one applies a tentative delta locally. Phase two either commits
the server's confirming message through the reconciler or reverts the
delta. Between the two phases only the tentative state is visible; the
final state replaces it in one step.
"""

from __future__ import annotations

import logging
from typing import Any

from missionsync.models.hud import HudMessage, HudState
from missionsync.state.events import IngestionSource
from missionsync.state.hud import HudReconciler

_logger = logging.getLogger(__name__)


class OptimisticHudUpdate:
    """A tentative HUD delta awaiting server confirmation."""

    def __init__(self, base: HudState, delta: dict[str, Any]) -> None:
        known = HudState.field_names()
        self._base = base
        self._delta = {key: value for key, value in delta.items() if key in known}
        self._tentative = base.with_fields(self._delta)
        self._resolved = False

    @property
    def tentative(self) -> HudState:
        return self._tentative

    @property
    def resolved(self) -> bool:
        return self._resolved

    def commit(self, current: HudState, message: HudMessage, reconciler: HudReconciler) -> HudState:
        """Replace the tentative values with the server-confirmed message.

        The message goes through the reconciler like any other update, so
        a confirmation older than what is already shown does not win.
        When it is dropped as stale the tentative values are reverted.
        """
        self._resolved = True
        if reconciler.is_stale(message):
            _logger.debug("Optimistic confirmation ts=%s is stale, reverting", message.server_timestamp)
            return self._revert_fields(current)
        return reconciler.merge(current, message, source=IngestionSource.OPTIMISTIC)

    def revert(self, current: HudState) -> HudState:
        """Undo the tentative delta.

        Fields that another update changed since the tentative state was
        shown keep their newer value.
        """
        self._resolved = True
        return self._revert_fields(current)

    def _revert_fields(self, current: HudState) -> HudState:
        restore = {
            key: getattr(self._base, key)
            for key, value in self._delta.items()
            if getattr(current, key) == value
        }
        return current.with_fields(restore)
