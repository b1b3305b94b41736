"""High-level async coordinator for one mission's live state."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp

from missionsync._mqtt import MqttPushCapability
from missionsync._ticker import TimerTicker
from missionsync._transport import HttpTransport, Transport
from missionsync.channel import ChannelAdapter, PushCapability, Subscription, hud_topic, timer_topic
from missionsync.clock import Clock, system_clock
from missionsync.config import MissionSyncConfig
from missionsync.ingestion.push import parse_push_payload
from missionsync.ingestion.snapshot import snapshot_to_messages
from missionsync.models.hud import HudMessage, HudState
from missionsync.models.snapshot import MissionSnapshot
from missionsync.models.timer import TimerDisplayState, TimerKind, TimerMessage
from missionsync.models.toast import ToastMessage
from missionsync.poller import FallbackPoller
from missionsync.snapshot_sync import SnapshotSync
from missionsync.state.events import IngestionSource
from missionsync.state.hud import HudReconciler
from missionsync.state.optimistic import OptimisticHudUpdate
from missionsync.state.timer import TimerEngine

_logger = logging.getLogger(__name__)


class MissionSync:
    """Keep a mission's HUD and countdown timers live.

    Push messages and fallback poll results reach the HUD reconciler and
    the timer engines through the same entry points
    (:meth:`handle_hud_message`, :meth:`handle_timer_message`), so both
    paths obey the same staleness and state-machine rules. State is only
    published through the caller's sinks.

    Usage::

        async with MissionSync(config, push=capability, on_hud_update=render) as sync:
            ...
    """

    def __init__(
        self,
        config: MissionSyncConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        push: PushCapability | None = None,
        on_hud_update: Callable[[HudState], None] | None = None,
        on_timers_update: Callable[[dict[TimerKind, TimerDisplayState]], None] | None = None,
        on_toast: Callable[[ToastMessage], None] | None = None,
        on_connection_change: Callable[[bool], None] | None = None,
        initial_hud: HudState | None = None,
        fallback_deadlines: Mapping[TimerKind, str | None] | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._config = config
        self._http_session = session
        self._external_session = session is not None
        self._transport = transport
        self._push = push
        self._on_hud_update = on_hud_update
        self._on_timers_update = on_timers_update
        self._on_toast = on_toast
        self._on_connection_change = on_connection_change
        self._clock = clock
        self._fallback_deadlines = dict(fallback_deadlines or {})

        self._hud = initial_hud if initial_hud is not None else HudState()
        self._reconciler = HudReconciler()
        self._engines: dict[TimerKind, TimerEngine] = {
            TimerKind(kind): TimerEngine(TimerKind(kind), clock=clock) for kind in config.timer_kinds
        }
        self._tickers: dict[TimerKind, TimerTicker] = {
            kind: TimerTicker(engine, self._on_engine_tick, interval_ms=config.tick_interval_ms)
            for kind, engine in self._engines.items()
        }
        self._seeded: set[TimerKind] = set()

        self._connected = True
        self._subscriptions: list[Subscription] = []
        self._snapshot_sync: SnapshotSync | None = None
        self._poller: FallbackPoller | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._started = False
        self._closed = False

    @classmethod
    def from_config(cls, config: MissionSyncConfig, **kwargs: Any) -> MissionSync:
        """Build a client using the MQTT push capability described by ``config.mqtt``."""
        if config.realtime_enabled and "push" not in kwargs:
            kwargs["push"] = MqttPushCapability(config.mqtt)
        return cls(config, **kwargs)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MissionSync:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def mission_id(self) -> str:
        return self._config.mission_id

    @property
    def hud(self) -> HudState:
        return self._hud

    @property
    def timers(self) -> dict[TimerKind, TimerDisplayState]:
        return {kind: engine.state for kind, engine in self._engines.items()}

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def poller_active(self) -> bool:
        return self._poller is not None and self._poller.active

    # ------------------------------------------------------------------
    # Mount / teardown
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self._transport

    async def start(self) -> None:
        """Seed from a snapshot, open the push channel and start fallback handling."""
        if self._started:
            return
        self._started = True

        self._snapshot_sync = SnapshotSync(self._require_transport(), self._config.mission_id)
        self._poller = FallbackPoller(
            self._snapshot_sync.fetch,
            self._apply_poll_snapshot,
            interval_ms=self._config.poll_interval_ms,
        )

        snapshot = await self._snapshot_sync.fetch()
        if snapshot is not None:
            self._apply_snapshot(snapshot, IngestionSource.SNAPSHOT)

        adapter = ChannelAdapter(self._push if self._config.realtime_enabled else None)
        for topic in (hud_topic(self.mission_id), timer_topic(self.mission_id)):
            subscription = adapter.open(topic, self.handle_push_payload)
            self._subscriptions.append(subscription)
            subscription.on_connected(self._handle_connected)
            subscription.on_disconnected(self._handle_disconnected)

        self._poller.set_connected(self._connected)

    async def close(self) -> None:
        """Tear down subscriptions, tick loops and polling. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True

        for subscription in self._subscriptions:
            subscription.close()
        for ticker in self._tickers.values():
            await ticker.stop()
        if self._poller is not None:
            await self._poller.close()

        pending = [task for task in self._background if not task.done()]
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._background.clear()

        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Connection state
    # ------------------------------------------------------------------

    def _handle_connected(self) -> None:
        if self._closed:
            return
        was_disconnected = not self._connected
        self._connected = True
        if not was_disconnected:
            return
        _logger.info("Realtime connected for mission %s", self.mission_id)
        self._notify_connection()
        if self._poller is not None:
            self._poller.set_connected(True)
        self._spawn(self.resync())

    def _handle_disconnected(self) -> None:
        if self._closed or not self._connected:
            return
        self._connected = False
        _logger.info("Realtime disconnected for mission %s, switching to fallback", self.mission_id)
        self._notify_connection()
        self._seed_fallbacks()
        if self._poller is not None:
            self._poller.set_connected(False)

    def _seed_fallbacks(self) -> None:
        changed = False
        for kind, engine in self._engines.items():
            if engine.has_message or kind in self._seeded:
                continue
            self._seeded.add(kind)
            engine.seed_fallback(self._fallback_deadlines.get(kind, self._config.fallback_ends_at))
            self._tickers[kind].ensure_running()
            changed = True
        if changed:
            self._notify_timers()

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Ingestion entry points
    # ------------------------------------------------------------------

    def handle_push_payload(self, payload: Any) -> None:
        """Route a decoded push payload to the matching entry point."""
        if self._closed:
            return
        message = parse_push_payload(payload)
        if message is None:
            return
        if message.mission_id and message.mission_id != self.mission_id:
            _logger.debug("Ignoring message for mission %s", message.mission_id)
            return
        if isinstance(message, HudMessage):
            self.handle_hud_message(message)
        elif isinstance(message, TimerMessage):
            self.handle_timer_message(message)
        else:
            self._notify(self._on_toast, message, "on_toast")

    def handle_hud_message(
        self,
        message: HudMessage,
        source: IngestionSource = IngestionSource.PUSH,
    ) -> HudState:
        merged = self._reconciler.merge(self._hud, message, source=source)
        if merged is not self._hud:
            self._set_hud(merged)
        return self._hud

    def handle_timer_message(self, message: TimerMessage) -> dict[TimerKind, TimerDisplayState]:
        changed = False
        for kind, engine in self._engines.items():
            before = engine.state
            if engine.apply(message) is not before:
                changed = True
                self._tickers[kind].ensure_running()
        if changed:
            self._notify_timers()
        return self.timers

    def _apply_snapshot(self, snapshot: MissionSnapshot, source: IngestionSource) -> None:
        hud_message, timer_messages = snapshot_to_messages(snapshot, fallback_ts=self._clock())
        self.handle_hud_message(hud_message, source)
        for timer_message in timer_messages:
            self.handle_timer_message(timer_message)

    def _apply_poll_snapshot(self, snapshot: MissionSnapshot) -> None:
        if self._closed:
            return
        self._apply_snapshot(snapshot, IngestionSource.POLL)

    async def resync(self) -> MissionSnapshot | None:
        """Fetch a snapshot now and merge it; returns ``None`` on failure."""
        if self._snapshot_sync is None:
            return None
        snapshot = await self._snapshot_sync.fetch()
        if snapshot is not None and not self._closed:
            self._apply_snapshot(snapshot, IngestionSource.SNAPSHOT)
        return snapshot

    async def apply_optimistic(
        self,
        delta: dict[str, Any],
        request: Callable[[], Awaitable[HudMessage | None]],
    ) -> HudState:
        """Show *delta* immediately, then commit or revert on the server's answer.

        ``request`` returns the server's confirming HUD message, or
        ``None`` when the change was rejected. If it raises, the delta is
        reverted and the exception propagates.
        """
        update = OptimisticHudUpdate(self._hud, delta)
        self._set_hud(update.tentative)
        try:
            confirmed = await request()
        except (Exception, asyncio.CancelledError):
            self._set_hud(update.revert(self._hud))
            raise
        if confirmed is None:
            final = update.revert(self._hud)
        else:
            final = update.commit(self._hud, confirmed, self._reconciler)
        self._set_hud(final)
        return final

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    def _on_engine_tick(self, _state: TimerDisplayState) -> None:
        self._notify_timers()

    def _set_hud(self, hud: HudState) -> None:
        self._hud = hud
        self._notify(self._on_hud_update, hud, "on_hud_update")

    def _notify_timers(self) -> None:
        self._notify(self._on_timers_update, self.timers, "on_timers_update")

    def _notify_connection(self) -> None:
        self._notify(self._on_connection_change, self._connected, "on_connection_change")

    @staticmethod
    def _notify(callback: Callable[[Any], None] | None, value: Any, name: str) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            _logger.warning("%s callback failed", name, exc_info=True)
