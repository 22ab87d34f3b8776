"""pydmatter - Async client and device workflow for Digital Matter trackers on Geotab."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pydmatter")
except PackageNotFoundError:
    __version__ = "0+local"
from pydmatter.client import DmClient
from pydmatter.config import DmConfig, GeotabCredentials
from pydmatter.discovery import TypeFound, TypeNotFound, discover_device_type
from pydmatter.edit import EditState, ParameterEditSession, SaveOutcome
from pydmatter.exceptions import (
    DmBackendError,
    DmConfigurationError,
    DmEditSessionError,
    DmError,
    DmReloadInProgressError,
)
from pydmatter.models import (
    BatteryStatus,
    Device,
    DeviceFamily,
    DeviceType,
    ParamSection,
    RegistryDevice,
    VendorDevice,
)
from pydmatter.pipeline import EnrichmentPipeline, PipelineOutcome, PipelineResult
from pydmatter.registry import GeotabRegistry, RegistryIdentity
from pydmatter.store import DeviceStore
from pydmatter.tenant import MappingTenantResolver, TenantResolver
from pydmatter.view import BatteryBand, DeviceView, count_summary, filter_devices, project

__all__ = [
    "__version__",
    "BatteryBand",
    "BatteryStatus",
    "Device",
    "DeviceFamily",
    "DeviceStore",
    "DeviceType",
    "DeviceView",
    "DmBackendError",
    "DmClient",
    "DmConfig",
    "DmConfigurationError",
    "DmEditSessionError",
    "DmError",
    "DmReloadInProgressError",
    "EditState",
    "EnrichmentPipeline",
    "GeotabCredentials",
    "GeotabRegistry",
    "MappingTenantResolver",
    "ParamSection",
    "ParameterEditSession",
    "PipelineOutcome",
    "PipelineResult",
    "RegistryDevice",
    "RegistryIdentity",
    "SaveOutcome",
    "TenantResolver",
    "TypeFound",
    "TypeNotFound",
    "VendorDevice",
    "count_summary",
    "discover_device_type",
    "filter_devices",
    "project",
]
