"""HTTP transport for the hosted store's REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyfleet._constants import USER_AGENT
from pyfleet._redact import redact_for_log
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetPersistenceError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the REST store.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...


class RestTransport:
    """JSON-over-HTTP transport that adds API key and schema headers."""

    def __init__(self, config: FleetConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _base_headers(self, method: str) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
            headers["authorization"] = f"Bearer {self._config.api_key}"
        if method == "GET":
            headers["accept-profile"] = self._config.schema
        else:
            headers["content-type"] = "application/json"
            headers["content-profile"] = self._config.schema
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` if empty)."""
        method = method.upper()
        all_headers = self._base_headers(method)
        if headers:
            all_headers.update(headers)

        url = f"{self._config.rest_url}/{path.lstrip('/')}"
        body = json.dumps(payload) if payload is not None else None

        _logger.debug("%s %s params=%s headers=%s", method, url, params, redact_for_log(all_headers))

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                data=body,
                headers=all_headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise FleetPersistenceError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except FleetPersistenceError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FleetPersistenceError(
                f"Request to {path} failed: {exc!r}",
                endpoint=path,
            ) from exc

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FleetPersistenceError(
                f"Invalid JSON from {path}: {text[:200]}",
                endpoint=path,
            ) from exc
