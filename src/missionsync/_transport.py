"""HTTP transport for the mission snapshot endpoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from missionsync.config import MissionSyncConfig
from missionsync.exceptions import MissionSyncTransportError

_logger = logging.getLogger(__name__)

SNAPSHOT_ENDPOINT = "/api/mission/snapshot"


class Transport(Protocol):
    """Structural transport interface used by the snapshot API module.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> dict[str, Any]:
        ...


class HttpTransport:
    """aiohttp transport returning decoded JSON objects."""

    def __init__(self, config: MissionSyncConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> dict[str, Any]:
        """GET *endpoint* and return the JSON object body.

        Raises
        ------
        MissionSyncTransportError
            Network failure, non-2xx status, or a body that is not a UTF-8
            JSON object.
        """
        url = f"{self._config.base_url.rstrip('/')}{endpoint}"
        headers = {"accept": "application/json"}

        _logger.debug("GET %s params=%s", url, dict(params))

        try:
            async with self._http.get(url, params=dict(params), headers=headers, timeout=self._timeout) as resp:
                raw = await resp.read()
                text = raw.decode("utf-8", errors="replace")
                if not 200 <= resp.status < 300:
                    raise MissionSyncTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except MissionSyncTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise MissionSyncTransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MissionSyncTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(body, dict):
            raise MissionSyncTransportError(
                f"Expected a JSON object from {endpoint}, got {type(body).__name__}",
                endpoint=endpoint,
            )
        return body
