from __future__ import annotations

from missionsync.models.hud import HudMessage, HudState
from missionsync.state.hud import HudReconciler

T = 1_735_732_800_000


def _initial() -> HudState:
    return HudState(fuel=100, hull=100, crew=100, success=50, science_delta=0, phase="DESIGN")


def _msg(ts: int, fields: dict, *, full: bool = False) -> HudMessage:
    return HudMessage(mission_id="m-1", server_timestamp=ts, fields=fields, is_full_snapshot=full)


def test_partial_update_overwrites_only_present_fields() -> None:
    reconciler = HudReconciler()
    current = _initial()

    merged = reconciler.merge(current, _msg(T, {"fuel": 90}))

    assert merged.fuel == 90
    assert merged.hull == 100
    assert merged.crew == 100
    assert merged.phase == "DESIGN"
    assert reconciler.last_applied_timestamp == T


def test_merge_returns_new_copy_and_leaves_current_untouched() -> None:
    reconciler = HudReconciler()
    current = _initial()

    merged = reconciler.merge(current, _msg(T, {"fuel": 10}))

    assert merged is not current
    assert current.fuel == 100


def test_older_message_after_newer_is_dropped() -> None:
    reconciler = HudReconciler()
    hud = _initial()

    hud = reconciler.merge(hud, _msg(T + 100, {"fuel": 80}))
    hud = reconciler.merge(hud, _msg(T, {"fuel": 50}))

    assert hud.fuel == 80
    assert reconciler.last_applied_timestamp == T + 100


def test_equal_timestamp_keeps_first_applied() -> None:
    reconciler = HudReconciler()
    hud = reconciler.merge(_initial(), _msg(T, {"fuel": 70}))

    after = reconciler.merge(hud, _msg(T, {"fuel": 20, "hull": 5}))

    assert after is hud
    assert after.fuel == 70
    assert after.hull == 100


def test_stale_full_snapshot_never_changes_state() -> None:
    reconciler = HudReconciler()
    hud = reconciler.merge(_initial(), _msg(T, {"fuel": 70}))

    after = reconciler.merge(hud, _msg(T - 1, {"phase": "FLIGHT"}, full=True))

    assert after == hud


def test_full_snapshot_resets_absent_fields_to_defaults() -> None:
    reconciler = HudReconciler()

    merged = reconciler.merge(_initial(), _msg(T, {"fuel": 40, "phase": "FLIGHT"}, full=True))

    assert merged.fuel == 40
    assert merged.phase == "FLIGHT"
    assert merged.hull == 0
    assert merged.crew == 0
    assert merged.success == 0
    assert merged.science_delta == 0


def test_full_snapshot_and_cumulative_partials_converge() -> None:
    fields = {"fuel": 60, "hull": 90, "crew": 80, "success": 70, "science_delta": 3, "phase": "FLIGHT"}

    by_snapshot = HudReconciler().merge(_initial(), _msg(T, fields, full=True))

    partial = HudReconciler()
    hud = _initial()
    for offset, key in enumerate(fields):
        hud = partial.merge(hud, _msg(T + offset, {key: fields[key]}))

    assert hud == by_snapshot


def test_malformed_values_pass_through() -> None:
    reconciler = HudReconciler()

    merged = reconciler.merge(_initial(), _msg(T, {"fuel": "lots"}))

    assert merged.fuel == "lots"


def test_unknown_fields_are_ignored() -> None:
    reconciler = HudReconciler()

    merged = reconciler.merge(_initial(), _msg(T, {"shields": 5, "crew": 3}))

    assert merged.crew == 3
    assert not hasattr(merged, "shields")


def test_wire_alias_for_science_delta() -> None:
    message = HudMessage.model_validate({"t": "hud", "mission_id": "m-1", "ts": T, "hud": {"scienceDelta": 7}})

    merged = HudReconciler().merge(_initial(), message)

    assert merged.science_delta == 7
