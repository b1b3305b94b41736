from __future__ import annotations

from datetime import UTC, datetime

import pytest

from missionsync.clock import ManualClock, ms_to_datetime
from missionsync.models.timer import TimerData, TimerKind, TimerMessage, TimerStatus
from missionsync.state.timer import TimerEngine

SERVER_NOW = int(datetime(2025, 1, 1, 12, 0, tzinfo=UTC).timestamp() * 1000)


def _iso(ms: int) -> str:
    return ms_to_datetime(ms).isoformat().replace("+00:00", "Z")


def _msg(
    *,
    ends_at: object,
    status: str = "running",
    now: object = None,
    kind: str = "LAUNCH",
) -> TimerMessage:
    return TimerMessage(
        mission_id="m-1",
        server_timestamp=SERVER_NOW,
        timer=TimerData(kind=kind, ends_at=ends_at, server_now=now, status=status),
    )


def test_drift_correction_client_behind_server() -> None:
    clock = ManualClock(SERVER_NOW - 5000)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)

    state = engine.apply(_msg(ends_at=_iso(SERVER_NOW + 300_000), now=_iso(SERVER_NOW)))

    assert engine.offset_ms == 5000
    assert state.remaining_ms == 300_000
    assert state.status == TimerStatus.RUNNING
    assert state.ends_at == ms_to_datetime(SERVER_NOW + 300_000)


def test_offset_is_last_write_wins() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)

    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 60_000), now=_iso(SERVER_NOW)))
    assert engine.state.remaining_ms == 60_000

    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 60_000), now=_iso(SERVER_NOW + 10_000)))

    assert engine.offset_ms == 10_000
    assert engine.state.remaining_ms == 50_000


def test_offset_retained_when_message_has_no_server_now() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 60_000), now=_iso(SERVER_NOW + 2000)))

    state = engine.apply(_msg(ends_at=_iso(SERVER_NOW + 30_000)))

    assert engine.offset_ms == 2000
    assert state.remaining_ms == 28_000


def test_offset_starts_at_zero() -> None:
    engine = TimerEngine(TimerKind.LAUNCH, clock=ManualClock(SERVER_NOW))

    state = engine.apply(_msg(ends_at=SERVER_NOW + 1500))

    assert engine.offset_ms == 0
    assert state.remaining_ms == 1500


def test_other_kind_is_ignored() -> None:
    engine = TimerEngine(TimerKind.LAUNCH, clock=ManualClock(SERVER_NOW))
    before = engine.state

    after = engine.apply(_msg(kind="BALLOT", ends_at=_iso(SERVER_NOW + 60_000)))

    assert after is before
    assert not engine.has_message


def test_ticks_count_down_and_end_timer() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 500)))

    for _ in range(6):
        clock.advance(100)
        engine.tick()

    assert engine.state.status == TimerStatus.ENDED
    assert engine.state.remaining_ms == 0
    assert not engine.is_ticking


def test_tick_updates_remaining_while_running() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.PHASE, clock=clock)
    engine.apply(_msg(kind="PHASE", ends_at=SERVER_NOW + 10_000))

    clock.advance(2500)
    state = engine.tick()

    assert state.remaining_ms == 7500
    assert state.status == TimerStatus.RUNNING


@pytest.mark.parametrize("status", ["paused", "ended"])
def test_ticks_do_not_change_paused_or_ended(status: str) -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 45_000), status=status))
    frozen = engine.state

    for _ in range(50):
        clock.advance(1000)
        engine.tick()

    assert engine.state == frozen
    assert engine.state.remaining_ms == 45_000


def test_running_message_with_past_deadline_displays_ended() -> None:
    engine = TimerEngine(TimerKind.LAUNCH, clock=ManualClock(SERVER_NOW))

    state = engine.apply(_msg(ends_at=_iso(SERVER_NOW - 1000)))

    assert state.status == TimerStatus.ENDED
    assert state.remaining_ms == 0


def test_new_message_resurrects_ended_timer() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=_iso(SERVER_NOW), status="ended"))
    assert engine.state.status == TimerStatus.ENDED

    state = engine.apply(_msg(ends_at=_iso(SERVER_NOW + 20_000), status="running"))

    assert state.status == TimerStatus.RUNNING
    assert engine.is_ticking


@pytest.mark.parametrize(
    "ends_at,status,now",
    [
        (None, "running", None),
        ("not-a-date", "running", None),
        ("2025-01-01T12:05:00Z", "sprinting", None),
        ("2025-01-01T12:05:00Z", "running", "yesterday"),
    ],
)
def test_malformed_message_is_a_noop(ends_at: object, status: str, now: object) -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 60_000), now=_iso(SERVER_NOW + 1000)))
    before = engine.state

    after = engine.apply(_msg(ends_at=ends_at, status=status, now=now))

    assert after is before
    assert engine.offset_ms == 1000


def test_remaining_never_negative_and_bounded() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=SERVER_NOW + 1000, now=SERVER_NOW))

    for _ in range(30):
        clock.advance(97)
        state = engine.tick()
        assert 0 <= state.remaining_ms <= max(0, SERVER_NOW + 1000 - (clock() + engine.offset_ms))


def test_seed_fallback_future_deadline_runs() -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)

    state = engine.seed_fallback(_iso(SERVER_NOW + 60_000))

    assert state.status == TimerStatus.RUNNING
    assert state.remaining_ms == 60_000

    clock.advance(1000)
    assert engine.tick().remaining_ms == 59_000


@pytest.mark.parametrize("deadline", [None, "garbage", "2000-01-01T00:00:00Z"])
def test_seed_fallback_without_usable_deadline_is_ended(deadline: str | None) -> None:
    engine = TimerEngine(TimerKind.LAUNCH, clock=ManualClock(SERVER_NOW))

    state = engine.seed_fallback(deadline)

    assert state.status == TimerStatus.ENDED
    assert state.remaining_ms == 0
    assert not engine.is_ticking


def test_remaining_seconds_rounds_up() -> None:
    engine = TimerEngine(TimerKind.LAUNCH, clock=ManualClock(SERVER_NOW))

    state = engine.apply(_msg(ends_at=SERVER_NOW + 1001))

    assert state.remaining_seconds == 2


@pytest.mark.parametrize(
    ("ends_at", "now"),
    [
        (10**20, None),
        (10**400, None),
        (-(10**20), None),
        (float("inf"), None),
        (SERVER_NOW + 60_000, 10**20),
    ],
)
def test_out_of_range_instants_leave_engine_untouched(ends_at: object, now: object) -> None:
    clock = ManualClock(SERVER_NOW)
    engine = TimerEngine(TimerKind.LAUNCH, clock=clock)
    engine.apply(_msg(ends_at=_iso(SERVER_NOW + 30_000), status="paused", now=_iso(SERVER_NOW + 1000)))
    before = engine.state
    ends_at_ms = engine._ends_at_ms  # type: ignore[attr-defined]

    after = engine.apply(_msg(ends_at=ends_at, now=now))

    assert after is before
    assert engine.state.status == TimerStatus.PAUSED
    assert engine.offset_ms == 1000
    assert engine._ends_at_ms == ends_at_ms  # type: ignore[attr-defined]


def test_out_of_range_instant_before_first_message_keeps_engine_empty() -> None:
    engine = TimerEngine(TimerKind.LAUNCH, clock=ManualClock(SERVER_NOW))

    engine.apply(_msg(ends_at=10**20, now=SERVER_NOW))

    assert engine.has_message is False
    assert engine.offset_ms == 0
    assert engine.state.status == TimerStatus.ENDED


def test_seed_fallback_rejects_out_of_range_deadline() -> None:
    engine = TimerEngine(TimerKind.BALLOT, clock=ManualClock(SERVER_NOW))

    state = engine.seed_fallback(10**20)

    assert state.status == TimerStatus.ENDED
    assert state.remaining_ms == 0
