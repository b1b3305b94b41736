"""Client configuration for missionsync."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from missionsync.exceptions import MissionSyncConfigError
from missionsync.models.timer import TimerKind


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env: Mapping[str, str], key: str, cast: type) -> Any:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise MissionSyncConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class MqttSettings:
    """Broker connection details for the MQTT push capability.

    Only used when the caller builds a :class:`~missionsync._mqtt.MqttPushCapability`
    from configuration; a caller can inject any other push capability instead.
    """

    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    tls: bool = False
    keepalive: int = 60
    client_id_prefix: str = "missionsync"


@dataclasses.dataclass(frozen=True)
class MissionSyncConfig:
    """Client configuration.

    Parameters
    ----------
    mission_id : str
        Identifier of the mission to track.
    base_url : str
        Base URL of the mission server. The snapshot endpoint is
        ``{base_url}/api/mission/snapshot``.
    poll_interval_ms : int
        Fallback polling interval in milliseconds while the push
        channel is disconnected.
    tick_interval_ms : int
        Local countdown tick interval in milliseconds.
    fallback_ends_at : str or None
        ISO 8601 deadline used to seed timers when realtime is
        unavailable and no timer message has arrived yet.
    request_timeout : float
        Total timeout in seconds for one snapshot request.
    realtime_enabled : bool
        Open the push channel. When ``False`` the client behaves as if
        no push capability exists and polls from the start.
    timer_kinds : tuple of str
        Timer kinds tracked by the client (``LAUNCH``, ``BALLOT``, ``PHASE``).
    mqtt : MqttSettings
        Broker details for the bundled MQTT push capability.
    """

    mission_id: str
    base_url: str = "http://localhost:3000"
    poll_interval_ms: int = 5000
    tick_interval_ms: int = 100
    fallback_ends_at: str | None = None
    request_timeout: float = 10.0
    realtime_enabled: bool = True
    timer_kinds: tuple[str, ...] = ("LAUNCH", "BALLOT", "PHASE")
    mqtt: MqttSettings = dataclasses.field(default_factory=MqttSettings)

    def __post_init__(self) -> None:
        if not self.mission_id or not self.mission_id.strip():
            raise MissionSyncConfigError("mission_id must be non-empty")
        if self.poll_interval_ms <= 0:
            raise MissionSyncConfigError("poll_interval_ms must be positive")
        if self.tick_interval_ms <= 0:
            raise MissionSyncConfigError("tick_interval_ms must be positive")
        if self.request_timeout <= 0:
            raise MissionSyncConfigError("request_timeout must be positive")
        unknown = [kind for kind in self.timer_kinds if kind not in TimerKind.__members__]
        if unknown:
            raise MissionSyncConfigError(f"Unknown timer kinds: {', '.join(unknown)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> MissionSyncConfig:
        """Create configuration from environment variables.

        Reads ``MISSIONSYNC_MISSION_ID`` and optional ``MISSIONSYNC_*``
        variables. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        MissionSyncConfig
            Populated configuration.

        Raises
        ------
        MissionSyncConfigError
            A numeric variable could not be parsed or a value is invalid.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        _ENV_MQTT_MAP = {
            "MISSIONSYNC_MQTT_HOST": "host",
            "MISSIONSYNC_MQTT_USERNAME": "username",
            "MISSIONSYNC_MQTT_PASSWORD": "password",
            "MISSIONSYNC_MQTT_CLIENT_ID_PREFIX": "client_id_prefix",
        }
        for env_key, field_name in _ENV_MQTT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val
        port = _env_number(env, "MISSIONSYNC_MQTT_PORT", int)
        if port is not None:
            mqtt_kwargs["port"] = port
        keepalive = _env_number(env, "MISSIONSYNC_MQTT_KEEPALIVE", int)
        if keepalive is not None:
            mqtt_kwargs["keepalive"] = keepalive
        if "MISSIONSYNC_MQTT_TLS" in env:
            mqtt_kwargs["tls"] = _env_bool(env.get("MISSIONSYNC_MQTT_TLS"), False)

        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttSettings):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        config_kwargs: dict[str, Any] = {"mqtt": MqttSettings(**mqtt_kwargs)}

        _ENV_CONFIG_MAP = {
            "MISSIONSYNC_MISSION_ID": "mission_id",
            "MISSIONSYNC_BASE_URL": "base_url",
            "MISSIONSYNC_FALLBACK_ENDS_AT": "fallback_ends_at",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP = {
            "MISSIONSYNC_POLL_INTERVAL_MS": ("poll_interval_ms", int),
            "MISSIONSYNC_TICK_INTERVAL_MS": ("tick_interval_ms", int),
            "MISSIONSYNC_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            if field_name in overrides:
                continue
            parsed = _env_number(env, env_key, cast)
            if parsed is not None:
                config_kwargs[field_name] = parsed

        kinds_env = env.get("MISSIONSYNC_TIMER_KINDS")
        if kinds_env is not None and "timer_kinds" not in overrides:
            config_kwargs["timer_kinds"] = tuple(k.strip().upper() for k in kinds_env.split(",") if k.strip())

        if "realtime_enabled" not in overrides:
            config_kwargs["realtime_enabled"] = _env_bool(env.get("MISSIONSYNC_REALTIME_ENABLED"), True)

        config_kwargs.update(overrides)

        if "mission_id" not in config_kwargs:
            raise MissionSyncConfigError("MISSIONSYNC_MISSION_ID is not set")

        return cls(**config_kwargs)
