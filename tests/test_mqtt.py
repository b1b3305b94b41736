from __future__ import annotations

import asyncio
from typing import Any

import pytest

from missionsync._mqtt import MqttPushHandle, decode_push_payload
from missionsync.config import MqttSettings


def test_decode_push_payload() -> None:
    assert decode_push_payload(b'{"t": "hud", "ts": 1}') == {"t": "hud", "ts": 1}
    assert decode_push_payload(b"[1, 2]") is None
    assert decode_push_payload(b"not json") is None
    assert decode_push_payload(b"\xff\xfe") is None


def _handle(loop: asyncio.AbstractEventLoop, received: list[Any]) -> MqttPushHandle:
    return MqttPushHandle(
        loop=loop,
        settings=MqttSettings(),
        topic="rt:mission:m-1:hud",
        on_message=received.append,
    )


@pytest.mark.asyncio
async def test_events_are_delivered_on_the_event_loop() -> None:
    received: list[Any] = []
    events: list[str] = []
    handle = _handle(asyncio.get_running_loop(), received)
    handle.on_connected(lambda: events.append("connected"))
    handle.on_disconnected(lambda: events.append("disconnected"))
    handle._running = True  # type: ignore[attr-defined]

    handle._emit(handle._fire_connected)  # type: ignore[attr-defined]
    handle._emit(handle._fire_message, {"t": "hud"})  # type: ignore[attr-defined]
    handle._emit(handle._fire_disconnected)  # type: ignore[attr-defined]
    await asyncio.sleep(0)

    assert events == ["connected", "disconnected"]
    assert received == [{"t": "hud"}]


@pytest.mark.asyncio
async def test_unsubscribe_silences_pending_events() -> None:
    received: list[Any] = []
    events: list[str] = []
    handle = _handle(asyncio.get_running_loop(), received)
    handle.on_disconnected(lambda: events.append("disconnected"))
    handle._running = True  # type: ignore[attr-defined]

    handle._emit(handle._fire_disconnected)  # type: ignore[attr-defined]
    handle._emit(handle._fire_message, {"t": "hud"})  # type: ignore[attr-defined]
    handle.unsubscribe()
    handle.unsubscribe()
    await asyncio.sleep(0)

    assert handle.is_running is False
    assert events == []
    assert received == []
