"""Clock source and instant parsing.

Everything in the engine measures time as integer epoch milliseconds
read through a ``Clock`` callable. Production code uses
:func:`system_clock`; tests inject a :class:`ManualClock`.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ManualClock:
    """Deterministic clock for tests and simulations."""

    def __init__(self, now_ms: int = 0) -> None:
        self._now_ms = int(now_ms)

    def __call__(self) -> int:
        return self._now_ms

    def set(self, now_ms: int) -> None:
        self._now_ms = int(now_ms)

    def advance(self, delta_ms: int) -> int:
        self._now_ms += int(delta_ms)
        return self._now_ms


def parse_instant(value: Any) -> int | None:
    """Parse an instant into epoch milliseconds.

    Accepts ISO 8601 strings (a trailing ``Z`` is allowed), datetimes
    (naive ones are taken as UTC) and numeric epoch milliseconds.
    Returns ``None`` for anything else, including NaN, infinities and
    instants that no ``datetime`` can represent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        value = dt.timestamp() * 1000
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parse_instant(parsed)
    elif not isinstance(value, (int, float)):
        return None

    try:
        ms_to_datetime(value)
    except (OverflowError, OSError, ValueError):
        return None
    return round(value)


def ms_to_datetime(value_ms: float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime.

    Raises ``OverflowError``, ``OSError`` or ``ValueError`` when the
    value cannot be represented.
    """
    return datetime.fromtimestamp(value_ms / 1000, tz=UTC)
