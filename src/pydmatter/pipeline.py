"""Device enrichment pipeline.

Turns the raw vendor device list into a tenant-scoped, Geotab-matched,
parameter-annotated device collection.  Stages run strictly in order and
each one finishes for every device before the next begins:

1. list         fetch vendor devices, scope to the caller's tenant
2. serials      resolve each device's Geotab serial
3. identity     match against the Geotab registry, drop unmatched devices
4. battery      annotate battery percentage
5. parameters   discover device type and read system parameters

Stages 1 and 3 may only narrow the collection; 2, 4 and 5 may only
annotate.  A backend failure for one device in an annotation stage is
logged and leaves that field unset.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from pydmatter.config import DmConfig
from pydmatter.discovery import (
    ParameterReader,
    TypeFound,
    candidate_types,
    discover_device_type,
)
from pydmatter.exceptions import DmBackendError, DmError
from pydmatter.models.device import DEFAULT_PROBE_ORDER, BatteryStatus, Device, DeviceType, VendorDevice
from pydmatter.models.registry import RegistryDevice
from pydmatter.registry import RegistryIdentity
from pydmatter.tenant import MappingTenantResolver, TenantResolver

_logger = logging.getLogger(__name__)


class VendorGateway(ParameterReader, Protocol):
    async def list_devices(self, client_filter: str | None = None) -> list[VendorDevice]: ...

    async def resolve_geotab_serial(self, product_id: int, serial_number: str) -> str | None: ...

    async def get_battery(self, product_id: int, serial_number: str) -> BatteryStatus | None: ...


class FleetRegistry(Protocol):
    @property
    def identity(self) -> RegistryIdentity: ...

    async def list_devices(self) -> list[RegistryDevice]: ...


class PipelineOutcome(enum.StrEnum):
    READY = "ready"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class PipelineResult:
    outcome: PipelineOutcome
    devices: tuple[Device, ...] = ()
    reason: str = ""
    """Why the run ended empty."""

    @property
    def is_empty(self) -> bool:
        return self.outcome is PipelineOutcome.EMPTY

    @classmethod
    def empty(cls, reason: str) -> PipelineResult:
        return cls(outcome=PipelineOutcome.EMPTY, reason=reason)


def _check_membership(stage: str, before: Sequence[Device], after: Sequence[Device], *, may_drop: bool) -> None:
    before_serials = [d.serial_number for d in before]
    after_serials = [d.serial_number for d in after]
    if may_drop:
        ok = set(after_serials) <= set(before_serials)
    else:
        ok = after_serials == before_serials
    if not ok:
        raise DmError(f"Stage {stage!r} changed device membership")


def index_registry(records: Sequence[RegistryDevice]) -> dict[str, RegistryDevice]:
    """Index registry records by serial; the first-listed record wins.

    Duplicate serials are logged since the tie-break is arbitrary.
    """
    index: dict[str, RegistryDevice] = {}
    for record in records:
        if record.serial_number is None:
            continue
        existing = index.get(record.serial_number)
        if existing is not None:
            _logger.warning(
                "Geotab serial %s is shared by devices %s and %s; using %s",
                record.serial_number,
                existing.id,
                record.id,
                existing.id,
            )
            continue
        index[record.serial_number] = record
    return index


class EnrichmentPipeline:
    """Runs the enrichment stages against a vendor gateway and a registry."""

    def __init__(
        self,
        gateway: VendorGateway,
        registry: FleetRegistry,
        *,
        tenant_resolver: TenantResolver | None = None,
        product_types: Mapping[int, DeviceType] | None = None,
        probe_order: Sequence[DeviceType] = DEFAULT_PROBE_ORDER,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._tenant_resolver = tenant_resolver
        self._product_types = dict(product_types or {})
        self._probe_order = tuple(probe_order)

    @classmethod
    def from_config(cls, gateway: VendorGateway, registry: FleetRegistry, config: DmConfig) -> EnrichmentPipeline:
        resolver = MappingTenantResolver(config.tenants) if config.tenants else None
        return cls(
            gateway,
            registry,
            tenant_resolver=resolver,
            product_types=config.product_types,
            probe_order=config.probe_order,
        )

    async def run(self) -> PipelineResult:
        """Run every stage and return the enriched collection.

        Raises
        ------
        DmConfigurationError
            If tenant scoping is configured and the caller's tenant
            cannot be resolved.
        """
        listed = await self.list_stage()
        if not listed:
            return PipelineResult.empty("no vendor devices")

        resolved = await self.resolve_serials(listed)
        _check_membership("serials", listed, resolved, may_drop=False)

        try:
            matched = await self.match_identity(resolved)
        except DmBackendError as exc:
            _logger.error("Could not load Geotab devices: %s", exc)
            return PipelineResult.empty(f"registry unavailable: {exc.detail}")
        _check_membership("identity", resolved, matched, may_drop=True)
        if not matched:
            return PipelineResult.empty("no vendor devices registered in Geotab")

        with_battery = await self.fetch_battery(matched)
        _check_membership("battery", matched, with_battery, may_drop=False)

        with_params = await self.fetch_parameters(with_battery)
        _check_membership("parameters", with_battery, with_params, may_drop=False)

        return PipelineResult(outcome=PipelineOutcome.READY, devices=tuple(with_params))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def list_stage(self) -> list[Device]:
        """Stage 1: list vendor devices, scoped to the caller's tenant."""
        tenant: str | None = None
        if self._tenant_resolver is not None:
            tenant = self._tenant_resolver.resolve(self._registry.identity)

        try:
            vendor_devices = await self._gateway.list_devices(tenant)
        except DmBackendError as exc:
            _logger.error("Could not load Digital Matter devices: %s", exc)
            return []

        devices = [Device.from_vendor(vendor) for vendor in vendor_devices]
        if tenant is not None:
            devices = [device for device in devices if device.client == tenant]
        _logger.info("Found %d Digital Matter devices", len(devices))
        return devices

    async def resolve_serials(self, devices: Sequence[Device]) -> list[Device]:
        """Stage 2: annotate Geotab serials."""
        resolved: list[Device] = []
        for device in devices:
            try:
                geotab_serial = await self._gateway.resolve_geotab_serial(device.product_id, device.serial_number)
            except DmBackendError as exc:
                _logger.warning("Could not get Geotab serial for device %s: %s", device.serial_number, exc)
                geotab_serial = None
            resolved.append(device.with_geotab_serial(geotab_serial) if geotab_serial else device)
        _logger.info(
            "Matched %d devices with Geotab serials",
            sum(1 for device in resolved if device.geotab_serial is not None),
        )
        return resolved

    async def match_identity(self, devices: Sequence[Device]) -> list[Device]:
        """Stage 3: copy Geotab identity and drop unregistered devices.

        Raises :class:`DmBackendError` if the registry call fails.
        """
        index = index_registry(await self._registry.list_devices())
        matched: list[Device] = []
        for device in devices:
            if device.geotab_serial is None:
                continue
            record = index.get(device.geotab_serial)
            if record is None:
                _logger.debug("Device %s (%s) not in Geotab", device.serial_number, device.geotab_serial)
                continue
            matched.append(device.with_registry_match(name=record.name, registry_id=record.id))
        _logger.info("Found %d Digital Matter devices in the Geotab database", len(matched))
        return matched

    async def fetch_battery(self, devices: Sequence[Device]) -> list[Device]:
        """Stage 4: annotate battery percentage."""
        annotated: list[Device] = []
        for device in devices:
            try:
                status = await self._gateway.get_battery(device.product_id, device.serial_number)
            except DmBackendError as exc:
                _logger.warning("Could not get battery data for device %s: %s", device.serial_number, exc)
                status = None
            if status is not None and status.battery_percentage is not None:
                device = device.with_battery(status.battery_percentage)
            annotated.append(device)
        return annotated

    async def fetch_parameters(self, devices: Sequence[Device]) -> list[Device]:
        """Stage 5: discover each device's type and read its parameters."""
        annotated: list[Device] = []
        for device in devices:
            candidates = candidate_types(device.product_id, self._product_types, self._probe_order)
            result = await discover_device_type(self._gateway, device.product_id, device.serial_number, candidates)
            if isinstance(result, TypeFound):
                device = device.with_parameters(result.device_type, result.parameters)
            else:
                _logger.warning(
                    "No parameters for device %s (tried %s)",
                    device.serial_number,
                    ", ".join(result.tried),
                )
            annotated.append(device)
        _logger.info(
            "Retrieved parameters for %d devices",
            sum(1 for device in annotated if device.has_parameters),
        )
        return annotated
