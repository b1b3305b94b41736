from __future__ import annotations

from missionsync.models.hud import HudMessage, HudState
from missionsync.state.hud import HudReconciler
from missionsync.state.optimistic import OptimisticHudUpdate

T = 1_735_732_800_000


def _msg(ts: int, fields: dict) -> HudMessage:
    return HudMessage(mission_id="m-1", server_timestamp=ts, fields=fields)


def test_tentative_applies_delta_locally() -> None:
    base = HudState(fuel=100, hull=90)

    update = OptimisticHudUpdate(base, {"fuel": 60, "unknown": 1})

    assert update.tentative.fuel == 60
    assert update.tentative.hull == 90
    assert base.fuel == 100
    assert update.resolved is False


def test_commit_uses_server_values() -> None:
    reconciler = HudReconciler()
    base = HudState(fuel=100)
    update = OptimisticHudUpdate(base, {"fuel": 60})

    final = update.commit(update.tentative, _msg(T, {"fuel": 55}), reconciler)

    assert final.fuel == 55
    assert reconciler.last_applied_timestamp == T
    assert update.resolved is True


def test_stale_confirmation_reverts() -> None:
    reconciler = HudReconciler()
    base = reconciler.merge(HudState(), _msg(T, {"fuel": 100}))
    update = OptimisticHudUpdate(base, {"fuel": 60})

    final = update.commit(update.tentative, _msg(T - 5, {"fuel": 60}), reconciler)

    assert final.fuel == 100
    assert reconciler.last_applied_timestamp == T


def test_revert_restores_base_values() -> None:
    base = HudState(fuel=100, hull=80)
    update = OptimisticHudUpdate(base, {"fuel": 60, "hull": 70})

    final = update.revert(update.tentative)

    assert final.fuel == 100
    assert final.hull == 80
    assert update.resolved is True


def test_revert_keeps_fields_changed_by_newer_updates() -> None:
    reconciler = HudReconciler()
    base = HudState(fuel=100, hull=80)
    update = OptimisticHudUpdate(base, {"fuel": 60, "hull": 70})

    # A push message lands while the request is in flight.
    current = reconciler.merge(update.tentative, _msg(T, {"fuel": 42}))
    final = update.revert(current)

    assert final.fuel == 42
    assert final.hull == 80
