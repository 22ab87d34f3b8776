"""HTTP transport for the Digital Matter proxy and the Geotab API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pydmatter._constants import USER_AGENT
from pydmatter._redact import redact_for_log
from pydmatter.exceptions import DmBackendError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        ...


def _error_detail(text: str) -> str | None:
    """Pull the ``error`` message out of an error body, if it has one."""
    try:
        body = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        error = error.get("message") or error.get("name")
    if isinstance(error, str) and error.strip():
        return error.strip()
    return None


class HttpTransport:
    """JSON-over-HTTP transport bound to one base URL."""

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns ``None`` for an empty body.  Raises :class:`DmBackendError`
        on network failure, non-2xx status, or a body that is not JSON.
        """
        url = f"{self._base_url}{endpoint}"
        headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        data: str | None = None
        if json_body is not None:
            headers["content-type"] = "application/json"
            data = json.dumps(json_body, separators=(",", ":"))

        _logger.debug("%s %s params=%s body=%s", method, url, query, redact_for_log(json_body))

        try:
            async with self._http.request(
                method,
                url,
                params=query or None,
                data=data,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    detail = _error_detail(text) or f"HTTP {resp.status} {resp.reason or ''}".strip()
                    raise DmBackendError(
                        f"{endpoint} failed: {detail}",
                        status_code=resp.status,
                        endpoint=endpoint,
                        detail=detail,
                    )
        except DmBackendError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise DmBackendError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            return None

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DmBackendError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        _logger.debug("%s %s -> %s", method, endpoint, redact_for_log(body, max_string=128))
        return body
