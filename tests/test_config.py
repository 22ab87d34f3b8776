from __future__ import annotations

from datetime import timedelta

import pytest

from pydmatter._constants import BASE_URL
from pydmatter.config import DmConfig, GeotabCredentials
from pydmatter.exceptions import DmConfigurationError
from pydmatter.models.device import DEFAULT_PROBE_ORDER, DeviceType

_DM_ENV = (
    "DM_BASE_URL",
    "DM_REQUEST_TIMEOUT",
    "DM_CLIENT_FILTER",
    "DM_TENANTS",
    "DM_PRODUCT_TYPES",
    "DM_PROBE_ORDER",
    "DM_RECOVERY_EXPIRY_MINUTES",
    "GEOTAB_DATABASE",
    "GEOTAB_USERNAME",
    "GEOTAB_SESSION_ID",
    "GEOTAB_SERVER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _DM_ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = DmConfig.from_env()
    assert config.base_url == BASE_URL
    assert config.probe_order == DEFAULT_PROBE_ORDER
    assert config.recovery_expiry == timedelta(hours=1)
    assert dict(config.tenants) == {}


def test_from_env_parses_every_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DM_BASE_URL", "https://proxy.example.com/")
    monkeypatch.setenv("DM_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("DM_CLIENT_FILTER", "acme")
    monkeypatch.setenv("DM_TENANTS", "fleet_a=acme, fleet_b = globex")
    monkeypatch.setenv("DM_PRODUCT_TYPES", "87=Yabby34G,95=YabbyEdge")
    monkeypatch.setenv("DM_PROBE_ORDER", "Oyster2,Yabby34G")
    monkeypatch.setenv("DM_RECOVERY_EXPIRY_MINUTES", "30")

    config = DmConfig.from_env()

    assert config.base_url == "https://proxy.example.com"
    assert config.request_timeout == 12.5
    assert config.client_filter == "acme"
    assert dict(config.tenants) == {"fleet_a": "acme", "fleet_b": "globex"}
    assert dict(config.product_types) == {87: DeviceType.YABBY_3_4G, 95: DeviceType.YABBY_EDGE}
    assert config.probe_order == (DeviceType.OYSTER_2, DeviceType.YABBY_3_4G)
    assert config.recovery_expiry == timedelta(minutes=30)


def test_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DM_REQUEST_TIMEOUT", "12.5")
    config = DmConfig.from_env(request_timeout=3.0)
    assert config.request_timeout == 3.0


def test_unknown_probe_type_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DM_PROBE_ORDER", "Yabby34G,Toaster")
    with pytest.raises(DmConfigurationError):
        DmConfig.from_env()


def test_bad_product_types_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DM_PRODUCT_TYPES", "abc=Yabby34G")
    with pytest.raises(DmConfigurationError):
        DmConfig.from_env()


def test_malformed_pairs_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DM_TENANTS", "fleet_a")
    with pytest.raises(DmConfigurationError):
        DmConfig.from_env()


def test_validation() -> None:
    with pytest.raises(DmConfigurationError):
        DmConfig(probe_order=())
    with pytest.raises(DmConfigurationError):
        DmConfig(request_timeout=0)


def test_geotab_credentials_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEOTAB_DATABASE", "fleet_a")
    monkeypatch.setenv("GEOTAB_USERNAME", "me@example.com")
    monkeypatch.setenv("GEOTAB_SESSION_ID", "abc123")

    credentials = GeotabCredentials.from_env()

    assert credentials.database == "fleet_a"
    assert credentials.api_url == "https://my.geotab.com/apiv1"
    assert GeotabCredentials.from_env(server="my3.geotab.com").api_url == "https://my3.geotab.com/apiv1"


def test_geotab_credentials_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEOTAB_DATABASE", "fleet_a")
    with pytest.raises(DmConfigurationError, match="username, session_id"):
        GeotabCredentials.from_env()
