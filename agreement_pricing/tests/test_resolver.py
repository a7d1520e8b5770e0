import asyncio
from types import SimpleNamespace

import httpx
import pytest

from agreement_pricing.pricing import cache as config_cache
from agreement_pricing.pricing import config_api
from agreement_pricing.pricing.config_api import ServiceConfigClient
from agreement_pricing.pricing.frequency import FrequencyKey
from agreement_pricing.pricing.resolver import (
    SOURCE_CACHE,
    SOURCE_DEFAULT,
    SOURCE_PRICING,
    SOURCE_REMOTE,
    load_effective_config,
    load_effective_config_async,
    resolve_effective_config,
    resolve_rates,
)
from agreement_pricing.service_models.saniclean import SaniCleanModel
from agreement_pricing.service_models.types import RateSpec


class DummyResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


def _install_client(monkeypatch, routes, requested):
    """routes: path -> DummyResponse or exception instance"""

    class DummyClient:
        def __init__(self, *args, **kwargs):
            pass

        def get(self, url, params=None, headers=None):
            requested.append((url, dict(params or {}), dict(headers or {})))
            for path, result in routes.items():
                if url.endswith(path):
                    if isinstance(result, Exception):
                        raise result
                    return result
            return DummyResponse({}, status_code=404)

        def close(self):
            return None

    monkeypatch.setattr(config_api, "httpx", SimpleNamespace(Client=DummyClient, Timeout=lambda *a, **k: None))


def test_resolve_rates_short_circuits_per_leaf():
    specs = [
        RateSpec("a", 1, ("new.a", "legacy.a")),
        RateSpec("b", 2, ("new.b", "legacy.b")),
        RateSpec("c", 3, ("new.c",)),
        RateSpec("d", 4, ("new.d",)),
    ]
    remote = {"new": {"a": 10, "c": "n/a", "d": -1}, "legacy": {"a": 99, "b": "$20.50"}}
    rates, missing = resolve_rates(specs, remote)

    assert rates == {"a": 10, "b": 20.5, "c": 3, "d": 4}
    assert missing == ["c", "d"]


def test_included_rate_reuses_the_named_rate():
    specs = [
        RateSpec("urinalScreenRate", 8, ("screen",), included_as="urinalMatRate"),
        RateSpec("urinalMatRate", 8, ("mat",)),
    ]
    rates, _ = resolve_rates(specs, {"screen": "included", "mat": 6})
    assert rates["urinalScreenRate"] == 6


def test_without_client_static_defaults_are_used():
    cfg = load_effective_config(SaniCleanModel())
    assert cfg.source == SOURCE_DEFAULT
    assert cfg.using_defaults
    assert cfg.rates["insideBeltwayRatePerFixture"] == 7
    assert cfg.rates["smallFacilityMinimum"] == 50


def test_active_config_is_fetched_and_cached(monkeypatch):
    requested = []
    remote = {"standardALaCartePricing": {"insideBeltway": {"pricePerFixture": 9}}}
    _install_client(monkeypatch, {"/api/service-configs/active": DummyResponse({"config": remote})}, requested)

    client = ServiceConfigClient(base_url="http://backend", token="secret")
    cfg = load_effective_config(SaniCleanModel(), client)

    assert cfg.source == SOURCE_REMOTE
    assert not cfg.using_defaults
    assert cfg.rates["insideBeltwayRatePerFixture"] == 9
    # a partial config keeps the other defaults
    assert cfg.rates["insideBeltwayMinimum"] == 40
    assert "insideBeltwayMinimum" in cfg.missing
    assert config_cache.get_cached_config("saniclean") == remote

    url, params, headers = requested[0]
    assert url == "http://backend/api/service-configs/active"
    assert params == {"serviceId": "saniclean"}
    assert headers["Authorization"] == "Bearer secret"


def test_missing_active_config_uses_all_pricing_list(monkeypatch):
    requested = []
    routes = {
        "/api/service-configs/active": DummyResponse({"message": "not found"}, status_code=404),
        "/api/service-configs/pricing": DummyResponse(
            [{"serviceId": "saniclean", "config": {"smallBathroomMinimums": {"minimumPriceUnderThreshold": 60}}}]
        ),
    }
    _install_client(monkeypatch, routes, requested)

    cfg = load_effective_config(SaniCleanModel(), ServiceConfigClient(base_url="http://backend"))

    assert cfg.source == SOURCE_PRICING
    assert not cfg.using_defaults
    assert cfg.rates["smallFacilityMinimum"] == 60


def test_transport_error_degrades_to_cache_then_defaults(monkeypatch):
    requested = []
    boom = httpx.ConnectError("connection refused")
    _install_client(monkeypatch, {"/api/service-configs/active": boom}, requested)
    client = ServiceConfigClient(base_url="http://backend")

    cfg = load_effective_config(SaniCleanModel(), client)
    assert cfg.source == SOURCE_DEFAULT
    assert cfg.using_defaults

    config_cache.set_cached_config("saniclean", {"standardALaCartePricing": {"insideBeltway": {"pricePerFixture": 8}}})
    cfg = load_effective_config(SaniCleanModel(), client)
    assert cfg.source == SOURCE_CACHE
    assert cfg.using_defaults
    assert cfg.rates["insideBeltwayRatePerFixture"] == 8


def test_server_error_never_raises(monkeypatch):
    requested = []
    _install_client(monkeypatch, {"/api/service-configs/active": DummyResponse({}, status_code=500)}, requested)
    cfg = load_effective_config(SaniCleanModel(), ServiceConfigClient(base_url="http://backend"), use_cache=False)
    assert cfg.source == SOURCE_DEFAULT


@pytest.mark.parametrize("remote", [{}, {"unrelated": {"pricePerFixture": 9}}])
def test_remote_without_rate_fields_counts_as_defaults(remote):
    cfg = resolve_effective_config(SaniCleanModel(), remote, source=SOURCE_REMOTE)
    assert cfg.source == SOURCE_DEFAULT
    assert cfg.using_defaults
    assert "insideBeltwayRatePerFixture" in cfg.missing
    assert len(cfg.missing) == len(SaniCleanModel().rate_specs())
    assert cfg.rates["insideBeltwayRatePerFixture"] == 7


def test_empty_remote_reports_every_leaf_missing():
    specs = [RateSpec("a", 1, ("x.a",)), RateSpec("b", 2, ("x.b",))]
    rates, missing = resolve_rates(specs, {})
    assert rates == {"a": 1, "b": 2}
    assert missing == ["a", "b"]
    assert resolve_rates(specs, None)[1] == []


def test_frequency_metadata_flows_into_effective_config():
    remote = {"frequencyMetadata": {"quarterly": {"visitsPerYear": 4}}}
    cfg = resolve_effective_config(SaniCleanModel(), remote)
    assert cfg.frequencies[FrequencyKey.QUARTERLY].annual_multiplier == 4
    # SaniClean's own approximation applies where the remote is silent
    assert cfg.frequencies[FrequencyKey.BIANNUAL].annual_multiplier == pytest.approx(0.17 * 12)


def test_async_fetch(monkeypatch):
    class DummyAsyncClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        async def get(self, url, params=None, headers=None):
            return DummyResponse({"data": {"config": {"standardALaCartePricing": {"insideBeltway": {"tripCharge": 12}}}}})

    monkeypatch.setattr(
        config_api, "httpx", SimpleNamespace(AsyncClient=DummyAsyncClient, Timeout=lambda *a, **k: None)
    )
    cfg = asyncio.run(load_effective_config_async(SaniCleanModel(), ServiceConfigClient(base_url="http://backend")))
    assert cfg.source == SOURCE_REMOTE
    assert cfg.rates["insideBeltwayTripCharge"] == 12
