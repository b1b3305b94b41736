"""Deterministic acceptance policy.

This module intentionally contains *no* payload parsing. The ingestion
boundary is responsible for producing typed messages and timestamps.
"""

from __future__ import annotations


def should_accept_update(*, last_applied_ts: int | None, incoming_ts: int) -> bool:
    """Decide whether an incoming HUD message should be applied.

    Policy: accept only strictly newer timestamps. An incoming message
    whose timestamp equals the last applied one is rejected, so ties
    favor the message applied first.
    """
    if last_applied_ts is None:
        return True
    return incoming_ts > last_applied_ts


def remaining_ms(*, ends_at_ms: int, now_ms: int, offset_ms: int) -> int:
    """Milliseconds until *ends_at_ms* in server time, never negative."""
    return max(0, ends_at_ms - (now_ms + offset_ms))
