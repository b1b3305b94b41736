"""MQTT push capability.

Implements the push capability protocol on paho-mqtt. Each subscription
runs its own threaded paho network loop; every callback is marshalled
onto the asyncio loop that created the subscription.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from missionsync.channel import LifecycleCallback, MessageHandler
from missionsync.config import MqttSettings

_logger = logging.getLogger(__name__)


def decode_push_payload(payload: bytes) -> dict[str, Any] | None:
    """Decode an MQTT payload into a JSON object, or ``None`` if it is not one."""
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return parsed if isinstance(parsed, dict) else None


class MqttPushHandle:
    """One MQTT topic subscription with connected/disconnected callbacks."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        settings: MqttSettings,
        topic: str,
        on_message: MessageHandler,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._topic = topic
        self._on_message = on_message
        self._logger = logger or _logger
        self._connected_cb: LifecycleCallback | None = None
        self._disconnected_cb: LifecycleCallback | None = None
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def on_connected(self, callback: LifecycleCallback) -> None:
        self._connected_cb = callback

    def on_disconnected(self, callback: LifecycleCallback) -> None:
        self._disconnected_cb = callback

    def _emit(self, fn: Callable[..., None], *args: Any) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(fn, *args)

    def _fire_connected(self) -> None:
        if self._running and self._connected_cb is not None:
            self._connected_cb()

    def _fire_disconnected(self) -> None:
        if self._running and self._disconnected_cb is not None:
            self._disconnected_cb()

    def _fire_message(self, payload: dict[str, Any]) -> None:
        if self._running:
            self._on_message(payload)

    def start(self) -> None:
        """Connect asynchronously and start the network loop."""
        settings = self._settings
        client_id = f"{settings.client_id_prefix}-{secrets.token_hex(6)}"
        self._logger.debug(
            "MQTT start requested host=%s port=%s topic=%s client_id=%s",
            settings.host,
            settings.port,
            self._topic,
            client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                self._emit(self._fire_disconnected)
                return
            self._logger.debug("MQTT connected, subscribing topic=%s", self._topic)
            c.subscribe(self._topic, qos=0)
            self._emit(self._fire_connected)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            parsed = decode_push_payload(msg.payload)
            if parsed is None:
                self._logger.debug("MQTT payload on %s is not a JSON object, dropped", msg.topic)
                return
            self._emit(self._fire_message, parsed)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)
                self._emit(self._fire_disconnected)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        self._client = client
        self._running = True
        client.connect_async(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()
        self._logger.debug("MQTT network loop started")

    def unsubscribe(self) -> None:
        """Stop and disconnect the client. Safe to call repeatedly."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._connected_cb = None
        self._disconnected_cb = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")


class MqttPushCapability:
    """Push capability backed by an MQTT broker."""

    def __init__(self, settings: MqttSettings, *, logger: logging.Logger | None = None) -> None:
        self._settings = settings
        self._logger = logger

    def subscribe(self, topic: str, on_message: MessageHandler) -> MqttPushHandle:
        """Open a subscription; must be called from a running event loop."""
        handle = MqttPushHandle(
            loop=asyncio.get_running_loop(),
            settings=self._settings,
            topic=topic,
            on_message=on_message,
            logger=self._logger,
        )
        handle.start()
        return handle
