"""Drift-corrected countdown state machine.

States are ``running``, ``paused`` and ``ended``. Two events drive it:

* ``apply(message)``: a server-declared deadline and status. The server
  is authoritative, so a message can move the engine into any state,
  including out of ``ended``.
* ``tick()``: a local periodic event. Only a ``running`` engine reacts;
  when the remaining time reaches zero it switches to ``ended`` and
  stops asking for ticks.

Server and client clocks disagree. Each message carrying ``server_now``
resets the drift offset to ``server_now - local_receive_time`` and every
later "now" read is shifted by that offset.
"""

from __future__ import annotations

import logging
from typing import Any

from missionsync.clock import Clock, ms_to_datetime, parse_instant, system_clock
from missionsync.models.timer import TimerDisplayState, TimerKind, TimerMessage, TimerStatus
from missionsync.state.policy import remaining_ms

_logger = logging.getLogger(__name__)


def _parse_status(value: Any) -> TimerStatus | None:
    if isinstance(value, TimerStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return TimerStatus(value.strip().lower())
    except ValueError:
        return None


class TimerEngine:
    """Countdown for a single timer kind."""

    def __init__(self, kind: TimerKind, *, clock: Clock = system_clock) -> None:
        self._kind = kind
        self._clock = clock
        self._offset_ms = 0
        self._ends_at_ms: int | None = None
        self._has_message = False
        self._state = TimerDisplayState(kind=kind)

    @property
    def kind(self) -> TimerKind:
        return self._kind

    @property
    def state(self) -> TimerDisplayState:
        return self._state

    @property
    def offset_ms(self) -> int:
        """Current drift offset (server time minus local time)."""
        return self._offset_ms

    @property
    def is_ticking(self) -> bool:
        """Whether the engine still needs tick events."""
        return self._state.status == TimerStatus.RUNNING

    @property
    def has_message(self) -> bool:
        """Whether any message for this kind has been applied."""
        return self._has_message

    def _now(self) -> int:
        return self._clock()

    def _remaining(self, now_ms: int) -> int:
        if self._ends_at_ms is None:
            return 0
        return remaining_ms(ends_at_ms=self._ends_at_ms, now_ms=now_ms, offset_ms=self._offset_ms)

    def apply(self, message: TimerMessage) -> TimerDisplayState:
        """Apply a server timer message.

        Messages for another kind are ignored. A message with a missing
        or unparseable ``ends_at`` or ``server_now``, or an unknown
        status, leaves the engine untouched.
        """
        timer = message.timer
        if str(timer.kind).strip().upper() != self._kind.value:
            return self._state

        ends_at_ms = parse_instant(timer.ends_at)
        status = _parse_status(timer.status)
        server_now_ms = parse_instant(timer.server_now)
        if ends_at_ms is None or status is None or (timer.server_now is not None and server_now_ms is None):
            _logger.debug(
                "Dropping malformed %s timer message ends_at=%r status=%r now=%r",
                self._kind,
                timer.ends_at,
                timer.status,
                timer.server_now,
            )
            return self._state

        received_at = self._now()
        offset_ms = server_now_ms - received_at if server_now_ms is not None else self._offset_ms
        remaining = remaining_ms(ends_at_ms=ends_at_ms, now_ms=received_at, offset_ms=offset_ms)
        if status == TimerStatus.RUNNING and remaining == 0:
            status = TimerStatus.ENDED
        state = TimerDisplayState(
            kind=self._kind,
            status=status,
            ends_at=ms_to_datetime(ends_at_ms),
            remaining_ms=remaining,
        )

        # Commit only once the new state is fully built.
        if offset_ms != self._offset_ms:
            _logger.debug("Drift correction for %s: %sms", self._kind, offset_ms)
        self._offset_ms = offset_ms
        self._ends_at_ms = ends_at_ms
        self._has_message = True
        self._state = state
        _logger.debug("Timer %s -> %s remaining=%sms", self._kind, status, remaining)
        return self._state

    def tick(self) -> TimerDisplayState:
        """Advance the countdown; a no-op unless running."""
        if not self.is_ticking:
            return self._state

        remaining = self._remaining(self._now())
        if remaining == 0:
            self._state = self._state.model_copy(update={"remaining_ms": 0, "status": TimerStatus.ENDED})
            _logger.debug("Timer %s reached zero", self._kind)
        elif remaining != self._state.remaining_ms:
            self._state = self._state.model_copy(update={"remaining_ms": remaining})
        return self._state

    def seed_fallback(self, ends_at: Any) -> TimerDisplayState:
        """Start from a locally known deadline when no server message is available.

        A parseable future deadline gives a running countdown; anything
        else gives ``ended`` with zero remaining. The drift offset is
        left as is.
        """
        ends_at_ms = parse_instant(ends_at)
        if ends_at_ms is None:
            if ends_at is not None:
                _logger.debug("Ignoring unparseable fallback deadline for %s: %r", self._kind, ends_at)
            self._ends_at_ms = None
            self._state = TimerDisplayState(kind=self._kind)
            return self._state

        remaining = remaining_ms(ends_at_ms=ends_at_ms, now_ms=self._now(), offset_ms=self._offset_ms)
        state = TimerDisplayState(
            kind=self._kind,
            status=TimerStatus.RUNNING if remaining > 0 else TimerStatus.ENDED,
            ends_at=ms_to_datetime(ends_at_ms),
            remaining_ms=remaining,
        )
        self._ends_at_ms = ends_at_ms
        self._state = state
        _logger.debug("Timer %s seeded from fallback remaining=%sms", self._kind, remaining)
        return self._state
