"""Device store.

Owns the enriched device collection for one caller.  A reload replaces
the collection wholesale; edit sessions write saved parameters back into
it.  Nothing here is module-level state, so several stores can coexist.
"""

from __future__ import annotations

import asyncio
import logging

from pydmatter.edit import ParameterEditSession, ParameterWriter
from pydmatter.exceptions import DmEditSessionError, DmReloadInProgressError
from pydmatter.models.device import Device
from pydmatter.pipeline import EnrichmentPipeline, PipelineResult
from pydmatter.view import DeviceView, count_summary, filter_devices, project

_logger = logging.getLogger(__name__)


class DeviceStore:
    """Enriched devices plus the edit sessions open against them.

    Usage::

        store = DeviceStore(pipeline, client)
        result = await store.reload()
        session = store.open_edit_session(serial)
    """

    def __init__(self, pipeline: EnrichmentPipeline, writer: ParameterWriter) -> None:
        self._pipeline = pipeline
        self._writer = writer
        self._devices: tuple[Device, ...] = ()
        self._last_result: PipelineResult | None = None
        self._reload_lock = asyncio.Lock()
        self._sessions: dict[str, ParameterEditSession] = {}

    @property
    def devices(self) -> tuple[Device, ...]:
        return self._devices

    @property
    def last_result(self) -> PipelineResult | None:
        return self._last_result

    @property
    def is_reloading(self) -> bool:
        return self._reload_lock.locked()

    async def reload(self) -> PipelineResult:
        """Run the pipeline and replace the collection with its result.

        Open edit sessions are closed since their device records are
        being replaced.

        Raises
        ------
        DmReloadInProgressError
            If a reload is already running.
        """
        if self._reload_lock.locked():
            raise DmReloadInProgressError("A device reload is already in progress")
        async with self._reload_lock:
            result = await self._pipeline.run()
            for session in list(self._sessions.values()):
                session.close()
            self._devices = result.devices
            self._last_result = result
        if result.is_empty:
            _logger.info("No Digital Matter devices found (%s)", result.reason)
        return result

    def get(self, serial_number: str) -> Device | None:
        for device in self._devices:
            if device.serial_number == serial_number:
                return device
        return None

    def search(self, term: str) -> list[Device]:
        return filter_devices(self._devices, term)

    def project(self, term: str = "") -> list[DeviceView]:
        return project(self._devices, term)

    def summary(self, term: str = "") -> str:
        return count_summary(len(self.search(term)), len(self._devices))

    # ------------------------------------------------------------------
    # Edit sessions
    # ------------------------------------------------------------------

    def open_edit_session(self, serial_number: str) -> ParameterEditSession:
        """Open the parameter view of one device.

        Raises
        ------
        DmEditSessionError
            If the device is unknown, has no parameters, or already has
            an open session.
        """
        if serial_number in self._sessions:
            raise DmEditSessionError(f"Device {serial_number} already has an open edit session")
        device = self.get(serial_number)
        if device is None:
            raise DmEditSessionError(f"Unknown device {serial_number}")
        session = ParameterEditSession(
            device,
            self._writer,
            on_saved=self._replace_device,
            on_close=self._release,
        )
        self._sessions[serial_number] = session
        return session

    def edit_session(self, serial_number: str) -> ParameterEditSession | None:
        return self._sessions.get(serial_number)

    def _release(self, session: ParameterEditSession) -> None:
        serial = session.device.serial_number
        if self._sessions.get(serial) is session:
            del self._sessions[serial]

    def _replace_device(self, updated: Device) -> None:
        self._devices = tuple(
            updated if device.serial_number == updated.serial_number else device for device in self._devices
        )
