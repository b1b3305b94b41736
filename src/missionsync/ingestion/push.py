"""Push payload ingestion.

This module translates decoded push payloads into typed messages. The
discriminator field ``t`` selects the message type.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from missionsync.models.hud import HudMessage
from missionsync.models.timer import TimerMessage
from missionsync.models.toast import ToastMessage

_logger = logging.getLogger(__name__)

RealtimeMessage = HudMessage | TimerMessage | ToastMessage

_MESSAGE_TYPES: dict[str, type[HudMessage] | type[TimerMessage] | type[ToastMessage]] = {
    "hud": HudMessage,
    "timer": TimerMessage,
    "toast": ToastMessage,
}


def parse_push_payload(payload: Any) -> RealtimeMessage | None:
    """Parse a push payload into a typed message.

    Returns ``None`` for payloads that are not objects, carry an unknown
    discriminator, or fail validation. Dropped payloads are logged at
    debug level and never raise.
    """
    if not isinstance(payload, dict):
        _logger.debug("Dropping non-object push payload: %r", payload)
        return None

    tag = payload.get("t")
    if tag is None:
        # Untagged payloads are recognised by their body key.
        if "timer" in payload:
            tag = "timer"
        elif "hud" in payload:
            tag = "hud"
    model = _MESSAGE_TYPES.get(str(tag)) if tag is not None else None
    if model is None:
        _logger.debug("Dropping push payload with unknown type t=%r", tag)
        return None

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        _logger.debug("Dropping malformed %s payload: %s", tag, exc.errors(include_url=False))
        return None
