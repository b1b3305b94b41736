"""Push channel adapter.

Wraps an injected push capability behind a uniform subscription object.
A missing capability is a normal configuration: the adapter hands out a
no-op subscription that reports an immediate disconnect, which switches
the caller to fallback polling.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

_logger = logging.getLogger(__name__)

MessageHandler = Callable[[Any], None]
LifecycleCallback = Callable[[], None]


def hud_topic(mission_id: str) -> str:
    return f"rt:mission:{mission_id}:hud"


def timer_topic(mission_id: str) -> str:
    return f"rt:mission:{mission_id}:timer"


class PushHandle(Protocol):
    """Handle returned by a push capability's ``subscribe``."""

    def on_connected(self, callback: LifecycleCallback) -> None:
        ...

    def on_disconnected(self, callback: LifecycleCallback) -> None:
        ...

    def unsubscribe(self) -> None:
        ...


class PushCapability(Protocol):
    """Host-provided push primitive addressed by topic strings."""

    def subscribe(self, topic: str, on_message: MessageHandler) -> PushHandle:
        ...


class Subscription:
    """An open push subscription with an idempotent :meth:`close`.

    Callbacks registered here are detached on close, so a late lifecycle
    event or message from the underlying handle never reaches the caller.
    """

    def __init__(self, topic: str, handle: PushHandle | None = None) -> None:
        self._topic = topic
        self._handle = handle
        self._on_message: MessageHandler | None = None
        self._on_connected: LifecycleCallback | None = None
        self._on_disconnected: LifecycleCallback | None = None
        self._closed = False

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def available(self) -> bool:
        """Whether this subscription is backed by a real push handle."""
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def on_connected(self, callback: LifecycleCallback) -> None:
        if self._closed:
            return
        self._on_connected = callback

    def on_disconnected(self, callback: LifecycleCallback) -> None:
        if self._closed:
            return
        self._on_disconnected = callback
        if self._handle is None:
            # No push capability: report the disconnect straight away.
            callback()

    def _attach(self, on_message: MessageHandler) -> None:
        self._on_message = on_message
        if self._handle is not None:
            self._handle.on_connected(self._dispatch_connected)
            self._handle.on_disconnected(self._dispatch_disconnected)

    def _dispatch_message(self, payload: Any) -> None:
        handler = self._on_message
        if handler is not None:
            handler(payload)

    def _dispatch_connected(self) -> None:
        callback = self._on_connected
        if callback is not None:
            callback()

    def _dispatch_disconnected(self) -> None:
        callback = self._on_disconnected
        if callback is not None:
            callback()

    def close(self) -> None:
        """Detach callbacks and unsubscribe once. Never raises."""
        if self._closed:
            return
        self._closed = True
        self._on_message = None
        self._on_connected = None
        self._on_disconnected = None
        handle = self._handle
        self._handle = None
        if handle is None:
            return
        _logger.debug("Unsubscribing from %s", self._topic)
        try:
            handle.unsubscribe()
        except Exception:
            _logger.warning("Error unsubscribing from %s", self._topic, exc_info=True)


class ChannelAdapter:
    """Open subscriptions on an injected push capability."""

    def __init__(self, capability: PushCapability | None) -> None:
        self._capability = capability

    @property
    def available(self) -> bool:
        return self._capability is not None

    def open(self, topic: str, on_message: MessageHandler) -> Subscription:
        """Subscribe to *topic*; never raises.

        Returns a no-op subscription when the capability is missing or
        ``subscribe`` fails.
        """
        if self._capability is None:
            _logger.warning("Realtime not available, using fallback mode for %s", topic)
            subscription = Subscription(topic)
            subscription._attach(on_message)
            return subscription

        _logger.debug("Subscribing to %s", topic)
        subscription = Subscription(topic)
        try:
            handle = self._capability.subscribe(topic, subscription._dispatch_message)
        except Exception:
            _logger.warning("Error subscribing to %s, using fallback mode", topic, exc_info=True)
            subscription._attach(on_message)
            return subscription

        subscription._handle = handle
        subscription._attach(on_message)
        return subscription
