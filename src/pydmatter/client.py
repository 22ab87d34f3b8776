"""High-level async client for the Digital Matter device proxy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import aiohttp

from pydmatter._api import devices as _devices_api
from pydmatter._api import messaging as _messaging_api
from pydmatter._api import parameters as _parameters_api
from pydmatter._transport import HttpTransport
from pydmatter.config import DmConfig
from pydmatter.exceptions import DmError
from pydmatter.models.command import CommandAck
from pydmatter.models.device import BatteryStatus, DeviceType, SystemParameters, VendorDevice
from pydmatter.models.parameters import ParamSection

_logger = logging.getLogger(__name__)


class DmClient:
    """Async client for the Digital Matter device proxy.

    Usage::

        async with DmClient(config) as client:
            devices = await client.list_devices()
    """

    def __init__(
        self,
        config: DmConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None

    @property
    def config(self) -> DmConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DmClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            self._config.base_url,
            self._http_session,
            timeout=self._config.request_timeout,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def _require_transport(self) -> HttpTransport:
        if self._transport is None:
            raise DmError("Client not initialized. Use 'async with DmClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    async def list_devices(self, client_filter: str | None = None) -> list[VendorDevice]:
        """Fetch all vendor devices, optionally scoped to a tenant label."""
        if client_filter is None:
            client_filter = self._config.client_filter
        return await _devices_api.fetch_device_list(self._require_transport(), client_filter=client_filter)

    async def resolve_geotab_serial(self, product_id: int, serial_number: str) -> str | None:
        """Return the Geotab serial of a device, or ``None`` if not provisioned."""
        return await _devices_api.fetch_geotab_serial(self._require_transport(), product_id, serial_number)

    async def get_battery(self, product_id: int, serial_number: str) -> BatteryStatus | None:
        """Fetch battery percentage and device counters."""
        return await _devices_api.fetch_battery(self._require_transport(), product_id, serial_number)

    async def get_parameters(
        self,
        device_type: DeviceType,
        product_id: int,
        serial_number: str,
    ) -> SystemParameters | None:
        """Read system parameters, assuming the device is a *device_type*."""
        return await _parameters_api.fetch_parameters(
            self._require_transport(),
            device_type,
            product_id,
            serial_number,
        )

    # ------------------------------------------------------------------
    # Write endpoints
    # ------------------------------------------------------------------

    async def set_parameters(
        self,
        product_id: int,
        serial_number: str,
        sections: Sequence[ParamSection],
    ) -> CommandAck:
        """Partially update device parameters (only listed keys change)."""
        return await _parameters_api.set_parameters(self._require_transport(), product_id, serial_number, sections)

    async def send_recovery_mode(
        self,
        serial_number: str,
        *,
        now: datetime | None = None,
    ) -> CommandAck:
        """Queue a recovery-mode message, valid for ``config.recovery_expiry``."""
        _logger.info("Sending recovery mode to serial=%s", serial_number)
        return await _messaging_api.send_recovery_mode(
            self._require_transport(),
            serial_number,
            expiry=self._config.recovery_expiry,
            now=now,
        )
