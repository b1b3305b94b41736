#!/usr/bin/env python3
"""Watch a mission's live HUD and countdowns from the terminal.

Reads configuration from ``MISSIONSYNC_*`` environment variables (see
``MissionSyncConfig.from_env``); command-line flags override them.
Prints every HUD change, timer change and connection transition until
interrupted or ``--duration`` elapses.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from missionsync import (  # noqa: E402
    HudState,
    MissionSync,
    MissionSyncConfig,
    MissionSyncConfigError,
    TimerDisplayState,
    TimerKind,
    TimerStatus,
    ToastMessage,
)

_LOG = logging.getLogger("watch_mission")


def _format_remaining(ms: int) -> str:
    total_seconds = ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"T-{minutes:02d}:{seconds:02d}"


def _print_hud(hud: HudState) -> None:
    print(
        f"[hud] phase={hud.phase or '-'} fuel={hud.fuel} hull={hud.hull} "
        f"crew={hud.crew} success={hud.success} science={hud.science_delta}"
    )


class _TimerPrinter:
    """Print timer lines at most once per second per kind."""

    def __init__(self) -> None:
        self._last: dict[TimerKind, tuple[TimerStatus, int]] = {}

    def __call__(self, timers: dict[TimerKind, TimerDisplayState]) -> None:
        for kind, state in timers.items():
            key = (state.status, state.remaining_seconds)
            if self._last.get(kind) == key:
                continue
            self._last[kind] = key
            print(f"[timer] {kind.value:<6} {state.status.value:<7} {_format_remaining(state.remaining_ms)}")


def _print_toast(toast: ToastMessage) -> None:
    print(f"[toast] {toast.severity.value}: {toast.message}")


def _print_connection(connected: bool) -> None:
    print("[realtime] connected" if connected else "[realtime] disconnected, polling")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--mission-id", help="Mission to watch (overrides MISSIONSYNC_MISSION_ID)")
    parser.add_argument("--base-url", help="Mission server base URL")
    parser.add_argument("--no-realtime", action="store_true", help="Skip MQTT and poll only")
    parser.add_argument("--poll-interval-ms", type=int, help="Fallback poll interval")
    parser.add_argument("--fallback-ends-at", help="ISO deadline used when no timer message arrives")
    parser.add_argument("--duration", type=float, default=0.0, help="Stop after N seconds (0 = run until Ctrl-C)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.mission_id:
        overrides["mission_id"] = args.mission_id
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.no_realtime:
        overrides["realtime_enabled"] = False
    if args.poll_interval_ms:
        overrides["poll_interval_ms"] = args.poll_interval_ms
    if args.fallback_ends_at:
        overrides["fallback_ends_at"] = args.fallback_ends_at

    try:
        config = MissionSyncConfig.from_env(**overrides)
    except MissionSyncConfigError as exc:
        _LOG.error("Invalid configuration: %s", exc)
        return 2

    sync = MissionSync.from_config(
        config,
        on_hud_update=_print_hud,
        on_timers_update=_TimerPrinter(),
        on_toast=_print_toast,
        on_connection_change=_print_connection,
    )
    async with sync:
        _print_hud(sync.hud)
        if args.duration > 0:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
