"""Parameter edit session and save protocol.

One session tracks the pending edits for one device's parameter view::

    CLEAN → (edit) → DIRTY → (save) → SAVING → (ok)   → CLEAN
                                             → (fail) → SAVE_FAILED

``SAVE_FAILED`` behaves like ``DIRTY``: edits are kept and saving can be
retried.  Only edited keys are sent; the server leaves everything else
untouched, so the device's in-memory parameters are patched locally on
success instead of being re-read.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Protocol

from pydmatter.catalog import SectionFields, describe_parameters
from pydmatter.exceptions import DmBackendError, DmEditSessionError, DmError
from pydmatter.models.command import CommandAck
from pydmatter.models.device import Device
from pydmatter.models.parameters import ParamSection

_logger = logging.getLogger(__name__)

EditKey = tuple[str, str]
"""``(section id, parameter key)``."""


class ParameterWriter(Protocol):
    async def set_parameters(
        self,
        product_id: int,
        serial_number: str,
        sections: Sequence[ParamSection],
    ) -> CommandAck: ...


class EditState(enum.StrEnum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVE_FAILED = "save_failed"


class SaveOutcome(enum.StrEnum):
    SAVED = "saved"
    NOTHING_TO_SAVE = "nothing_to_save"


def group_by_section(edits: Mapping[EditKey, str]) -> dict[str, dict[str, str]]:
    """Group ``{(section, key): value}`` into ``{section: {key: value}}``.

    Sections keep the order in which they were first edited.
    """
    grouped: dict[str, dict[str, str]] = {}
    for (section_id, key), value in edits.items():
        grouped.setdefault(section_id, {})[key] = value
    return grouped


class ParameterEditSession:
    """Pending parameter edits for one device."""

    def __init__(
        self,
        device: Device,
        writer: ParameterWriter,
        *,
        on_saved: Callable[[Device], None] | None = None,
        on_close: Callable[[ParameterEditSession], None] | None = None,
    ) -> None:
        if not device.has_parameters:
            raise DmEditSessionError(f"No parameters available for device {device.serial_number}")
        self._device = device
        self._writer = writer
        self._on_saved = on_saved
        self._on_close = on_close
        self._pending: dict[EditKey, str] = {}
        self._state = EditState.CLEAN
        self._closed = False

    @property
    def device(self) -> Device:
        """The device as last saved (pending edits not applied)."""
        return self._device

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def pending(self) -> Mapping[EditKey, str]:
        return MappingProxyType(self._pending)

    @property
    def can_save(self) -> bool:
        return self._state in (EditState.DIRTY, EditState.SAVE_FAILED)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _require_open(self) -> None:
        if self._closed:
            raise DmEditSessionError(f"Edit session for {self._device.serial_number} is closed")

    def edit(self, section_id: str, key: str, value: str) -> None:
        """Record a pending value, replacing any earlier edit of the same field."""
        self._require_open()
        self._pending[(str(section_id), key)] = str(value)
        # A save in flight keeps its state; the new edit is picked up afterwards.
        if self._state is not EditState.SAVING:
            self._state = EditState.DIRTY

    def build_request(self) -> list[ParamSection]:
        """The ``ParamSections`` a save would send right now."""
        return [
            ParamSection(id=section_id, params=params)
            for section_id, params in group_by_section(self._pending).items()
        ]

    def fields(self) -> list[SectionFields]:
        """Catalogued fields for the view, with pending edits applied."""
        merged = self._device.with_updated_parameters(group_by_section(self._pending))
        return describe_parameters(merged.system_parameters or {}, merged.device_type)

    async def save(self) -> SaveOutcome:
        """Send pending edits as a partial update.

        Returns :attr:`SaveOutcome.NOTHING_TO_SAVE` without calling the
        backend when there are no edits.

        Raises
        ------
        DmEditSessionError
            If the session is closed or a save is already in flight.
        DmBackendError
            If the write fails; the session moves to ``SAVE_FAILED`` and
            keeps its edits.
        """
        self._require_open()
        if self._state is EditState.SAVING:
            raise DmEditSessionError(f"A save is already in progress for {self._device.serial_number}")
        if not self._pending:
            _logger.info("No changes detected for device %s", self._device.serial_number)
            self._state = EditState.CLEAN
            return SaveOutcome.NOTHING_TO_SAVE

        saving = dict(self._pending)
        sections = self.build_request()
        self._state = EditState.SAVING
        try:
            ack = await self._writer.set_parameters(self._device.product_id, self._device.serial_number, sections)
            if not ack.ok:
                raise DmBackendError(f"Parameter save rejected: {ack.error}", detail=ack.error or "")
        except DmError:
            if not self._closed:
                self._state = EditState.SAVE_FAILED
            _logger.warning("Saving parameters failed for device %s", self._device.serial_number, exc_info=True)
            raise

        if self._closed:
            # Closed mid-save; the owner's copy of the device wins.
            _logger.debug("Save for device %s finished after close; result not applied", self._device.serial_number)
            return SaveOutcome.SAVED

        self._device = self._device.with_updated_parameters(group_by_section(saving))
        for edit_key, value in saving.items():
            if self._pending.get(edit_key) == value:
                del self._pending[edit_key]
        self._state = EditState.DIRTY if self._pending else EditState.CLEAN
        _logger.info("Device parameters updated for %s", self._device.serial_number)

        if self._on_saved is not None:
            self._on_saved(self._device)
        return SaveOutcome.SAVED

    def close(self) -> None:
        """Discard pending edits and end the session.

        Unsaved edits are dropped without confirmation.  A save still in
        flight is not cancelled, but its result is no longer applied to
        :attr:`device` or reported through ``on_saved``.
        """
        if self._closed:
            return
        if self._state is EditState.SAVING:
            _logger.debug(
                "Closing edit session for device %s while a save is in flight",
                self._device.serial_number,
            )
        if self._pending:
            _logger.debug(
                "Discarding %d unsaved edits for device %s",
                len(self._pending),
                self._device.serial_number,
            )
        self._pending.clear()
        self._state = EditState.CLEAN
        self._closed = True
        if self._on_close is not None:
            self._on_close(self)
