from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from pydmatter.edit import EditState, ParameterEditSession, SaveOutcome, group_by_section
from pydmatter.exceptions import DmBackendError, DmEditSessionError
from pydmatter.models.command import CommandAck
from pydmatter.models.device import Device, DeviceType
from pydmatter.models.parameters import ParamSection


@dataclass
class FakeWriter:
    error: DmBackendError | None = None
    ack: dict[str, str] = field(default_factory=dict)
    requests: list[tuple[int, str, list[dict[str, object]]]] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def set_parameters(
        self,
        product_id: int,
        serial_number: str,
        sections: Sequence[ParamSection],
    ) -> CommandAck:
        self.requests.append((product_id, serial_number, [section.to_payload() for section in sections]))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return CommandAck.model_validate(self.ack)


def _device() -> Device:
    return (
        Device(serial_number="YB-1", product_id=87)
        .with_geotab_serial("G1")
        .with_registry_match(name="Truck 1", registry_id="b1")
        .with_parameters(
            DeviceType.YABBY_3_4G,
            {
                "2000": {"bTrackingMode": 0, "bPeriodicUploadHrMin": 60},
                "2100": {"fUploadOnStart": "0"},
            },
        )
    )


def test_group_by_section() -> None:
    grouped = group_by_section({("2100", "a"): "1", ("2000", "b"): "2", ("2100", "c"): "3"})
    assert grouped == {"2100": {"a": "1", "c": "3"}, "2000": {"b": "2"}}


def test_device_without_parameters_rejected() -> None:
    with pytest.raises(DmEditSessionError):
        ParameterEditSession(Device(serial_number="YB-1", product_id=87), FakeWriter())


@pytest.mark.asyncio
async def test_single_edit_sends_only_that_key() -> None:
    writer = FakeWriter()
    session = ParameterEditSession(_device(), writer)

    session.edit("2000", "bTrackingMode", "1")
    outcome = await session.save()

    assert outcome is SaveOutcome.SAVED
    assert writer.requests == [(87, "YB-1", [{"Id": "2000", "Params": {"bTrackingMode": "1"}}])]


@pytest.mark.asyncio
async def test_nothing_to_save_skips_backend() -> None:
    writer = FakeWriter()
    session = ParameterEditSession(_device(), writer)

    assert not session.can_save
    assert await session.save() is SaveOutcome.NOTHING_TO_SAVE
    assert writer.requests == []
    assert session.state is EditState.CLEAN


def test_re_edit_overwrites_pending_value() -> None:
    session = ParameterEditSession(_device(), FakeWriter())

    session.edit("2000", "bTrackingMode", "1")
    session.edit("2000", "bTrackingMode", "2")
    session.edit("2100", "fUploadOnStart", "1")

    assert session.state is EditState.DIRTY
    assert [section.to_payload() for section in session.build_request()] == [
        {"Id": "2000", "Params": {"bTrackingMode": "2"}},
        {"Id": "2100", "Params": {"fUploadOnStart": "1"}},
    ]


@pytest.mark.asyncio
async def test_success_updates_device_and_notifies() -> None:
    saved: list[Device] = []
    session = ParameterEditSession(_device(), FakeWriter(), on_saved=saved.append)

    session.edit("2000", "bTrackingMode", "2")
    await session.save()

    assert session.state is EditState.CLEAN
    assert session.pending == {}
    assert session.device.system_parameters is not None
    assert session.device.system_parameters["2000"] == {"bTrackingMode": "2", "bPeriodicUploadHrMin": 60}
    assert saved == [session.device]


@pytest.mark.asyncio
async def test_failure_keeps_edits_and_device() -> None:
    original = _device()
    saved: list[Device] = []
    writer = FakeWriter(error=DmBackendError("HTTP 500", status_code=500))
    session = ParameterEditSession(original, writer, on_saved=saved.append)

    session.edit("2000", "bTrackingMode", "2")
    with pytest.raises(DmBackendError):
        await session.save()

    assert session.state is EditState.SAVE_FAILED
    assert session.can_save
    assert session.pending == {("2000", "bTrackingMode"): "2"}
    assert session.device == original
    assert saved == []

    writer.error = None
    assert await session.save() is SaveOutcome.SAVED
    assert session.state is EditState.CLEAN


@pytest.mark.asyncio
async def test_rejected_ack_is_a_failure() -> None:
    session = ParameterEditSession(_device(), FakeWriter(ack={"error": "Device not found"}))

    session.edit("2100", "fUploadOnStart", "1")
    with pytest.raises(DmBackendError) as exc_info:
        await session.save()

    assert exc_info.value.detail == "Device not found"
    assert session.state is EditState.SAVE_FAILED


@pytest.mark.asyncio
async def test_save_while_saving_rejected_and_late_edit_kept() -> None:
    writer = FakeWriter(gate=asyncio.Event())
    session = ParameterEditSession(_device(), writer)

    session.edit("2000", "bTrackingMode", "1")
    first = asyncio.create_task(session.save())
    await asyncio.sleep(0)
    assert session.state is EditState.SAVING
    assert not session.can_save

    with pytest.raises(DmEditSessionError):
        await session.save()

    session.edit("2100", "fUploadOnStart", "1")
    assert session.state is EditState.SAVING

    assert writer.gate is not None
    writer.gate.set()
    assert await first is SaveOutcome.SAVED

    assert session.state is EditState.DIRTY
    assert session.pending == {("2100", "fUploadOnStart"): "1"}
    assert session.device.system_parameters is not None
    assert session.device.system_parameters["2000"]["bTrackingMode"] == "1"
    assert len(writer.requests) == 1


def test_fields_reflect_pending_edits() -> None:
    session = ParameterEditSession(_device(), FakeWriter())
    session.edit("2000", "bTrackingMode", "2")

    basic = next(section for section in session.fields() if section.section.section_id == "2000")
    tracking = next(f for f in basic.fields if f.spec.key == "bTrackingMode")

    assert tracking.value == "2"
    assert tracking.options is not None
    assert [o.value for o in tracking.options if o.selected] == ["2"]


def test_close_discards_edits() -> None:
    closed: list[ParameterEditSession] = []
    session = ParameterEditSession(_device(), FakeWriter(), on_close=closed.append)
    session.edit("2000", "bTrackingMode", "2")

    session.close()
    session.close()

    assert session.is_closed
    assert session.pending == {}
    assert closed == [session]
    with pytest.raises(DmEditSessionError):
        session.edit("2000", "bTrackingMode", "1")


@pytest.mark.asyncio
async def test_close_during_save_drops_result() -> None:
    original = _device()
    saved: list[Device] = []
    writer = FakeWriter(gate=asyncio.Event())
    session = ParameterEditSession(original, writer, on_saved=saved.append)

    session.edit("2000", "bTrackingMode", "2")
    saving = asyncio.create_task(session.save())
    await asyncio.sleep(0)
    session.close()

    assert writer.gate is not None
    writer.gate.set()
    assert await saving is SaveOutcome.SAVED

    assert saved == []
    assert session.device == original
    assert session.state is EditState.CLEAN


@pytest.mark.asyncio
async def test_close_during_failed_save_stays_clean() -> None:
    writer = FakeWriter(error=DmBackendError("HTTP 500", status_code=500), gate=asyncio.Event())
    session = ParameterEditSession(_device(), writer)

    session.edit("2000", "bTrackingMode", "2")
    saving = asyncio.create_task(session.save())
    await asyncio.sleep(0)
    session.close()

    assert writer.gate is not None
    writer.gate.set()
    with pytest.raises(DmBackendError):
        await saving
    assert session.state is EditState.CLEAN
