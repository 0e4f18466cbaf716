"""Pytest configuration and shared fixtures."""

import httpx
import pytest

from fxsense.sensitivity import GBMParams, OUParams, RunConfig, ShockSpec, ShockTarget

SIM_BASE_URL = "http://sim.test"


@pytest.fixture
def gbm_params():
    """GBM defaults from the analysis form."""
    return GBMParams(spot=1.10, sigma=0.15, mu=0.05)


@pytest.fixture
def ou_params():
    """OU defaults from the analysis form."""
    return OUParams(spot=1.10, kappa=3.0, theta=1.10, sigma=0.12)


@pytest.fixture
def run_config():
    return RunConfig(maturity=1.0, r_dom=0.03, r_for=0.01, paths=200, steps=200)


@pytest.fixture
def spot_shock():
    return ShockSpec(target=ShockTarget.SPOT, magnitude_pct=20)


def make_stats(spot: float, n: int = 3, pv_offset: float = 0.0) -> list[dict]:
    """Stats series with a band of ±10% around a flat mean."""
    return [
        {
            "time": i / (n - 1) if n > 1 else 0.0,
            "mean": spot + pv_offset,
            "p5": (spot + pv_offset) - 0.1 * spot,
            "p95": (spot + pv_offset) + 0.1 * spot,
        }
        for i in range(n)
    ]


def stats_payload(spot: float, n: int = 3) -> dict:
    """Simulation-service body whose values echo the requested spot."""
    return {
        "underlyingStats": make_stats(spot, n),
        "pvStats": make_stats(0.0, n, pv_offset=spot - 1.0),
    }


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Mock service: answers with stats centred on the requested spot."""
    spot = float(request.url.params["spot"])
    return httpx.Response(200, json=stats_payload(spot))


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def echo_transport(recorded_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        recorded_requests.append(request)
        return echo_handler(request)

    return httpx.MockTransport(handler)
