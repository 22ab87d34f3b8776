"""Geotab device registry client.

Issues a single JSON-RPC ``Get`` call for ``typeName: Device`` against
``https://<server>/apiv1``.  Authentication is done elsewhere; the caller
hands over an existing session id in :class:`GeotabCredentials`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import aiohttp
from pydantic import ValidationError

from pydmatter._transport import HttpTransport, Transport
from pydmatter.config import GeotabCredentials
from pydmatter.exceptions import DmBackendError, DmError
from pydmatter.models.registry import RegistryDevice

_logger = logging.getLogger(__name__)

_API_ENDPOINT = "/apiv1"


@dataclass(frozen=True, slots=True)
class RegistryIdentity:
    """Who is calling, as seen by the registry."""

    database: str
    username: str


def build_get_call(credentials: GeotabCredentials, type_name: str) -> dict[str, Any]:
    return {
        "method": "Get",
        "params": {
            "typeName": type_name,
            "credentials": {
                "database": credentials.database,
                "userName": credentials.username,
                "sessionId": credentials.session_id,
            },
        },
    }


def parse_device_result(body: Any) -> list[RegistryDevice]:
    """Parse a JSON-RPC ``Get Device`` response.

    Raises
    ------
    DmBackendError
        If the response carries an ``error`` member or no ``result`` list.
    """
    if not isinstance(body, dict):
        raise DmBackendError("Geotab response is not an object", endpoint=_API_ENDPOINT)
    error = body.get("error")
    if error is not None:
        message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
        raise DmBackendError(f"Geotab Get Device failed: {message}", endpoint=_API_ENDPOINT, detail=message)
    result = body.get("result")
    if not isinstance(result, list):
        raise DmBackendError("Geotab response has no result list", endpoint=_API_ENDPOINT)

    devices: list[RegistryDevice] = []
    for item in result:
        try:
            devices.append(RegistryDevice.model_validate(item))
        except ValidationError:
            _logger.warning("Skipping malformed registry device: %r", item)
    return devices


class GeotabRegistry:
    """Async client for the Geotab device registry.

    Usage::

        async with GeotabRegistry(credentials) as registry:
            devices = await registry.list_devices()
    """

    def __init__(
        self,
        credentials: GeotabCredentials,
        *,
        session: aiohttp.ClientSession | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self._credentials = credentials
        self._external_session = session is not None
        self._http_session = session
        self._request_timeout = request_timeout
        self._transport: Transport | None = None

    @property
    def identity(self) -> RegistryIdentity:
        return RegistryIdentity(database=self._credentials.database, username=self._credentials.username)

    async def __aenter__(self) -> GeotabRegistry:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            f"https://{self._credentials.server}",
            self._http_session,
            timeout=self._request_timeout,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    async def list_devices(self) -> list[RegistryDevice]:
        """Fetch every device registered in the caller's database."""
        if self._transport is None:
            raise DmError("Registry not initialized. Use 'async with GeotabRegistry(...) as registry:'")
        body = await self._transport.request_json(
            "POST",
            _API_ENDPOINT,
            json_body=build_get_call(self._credentials, "Device"),
        )
        devices = parse_device_result(body)
        _logger.debug("Geotab registry returned %d devices", len(devices))
        return devices
