"""Tests for the simulation service client and payload parsing."""

import httpx
import pytest

from conftest import SIM_BASE_URL, stats_payload
from fxsense.sensitivity import RawScenarioResult, StatsPoint
from fxsense.sensitivity.client import SimulationClient, parse_stats_payload
from fxsense.sensitivity.errors import ParseError, StatusError, TransportError
from fxsense.sensitivity.planner import plan
from fxsense.sensitivity.request_builder import SIMULATION_PATH, build_request


@pytest.fixture
def up_request(gbm_params, spot_shock, run_config):
    return build_request(plan(20)[2], gbm_params, spot_shock, run_config)


def _client(handler, **kwargs) -> SimulationClient:
    return SimulationClient(SIM_BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


# ---------------------------------------------------------------------------
# HTTP behaviour
# ---------------------------------------------------------------------------


class TestCall:
    @pytest.mark.asyncio
    async def test_success(self, up_request, echo_transport, recorded_requests):
        client = SimulationClient(SIM_BASE_URL, transport=echo_transport)
        result = await client.call(up_request)

        assert isinstance(result, RawScenarioResult)
        assert len(result.underlying_stats) == 3
        assert result.underlying_stats[0].mean == pytest.approx(1.32)

        sent = recorded_requests[0]
        assert sent.method == "GET"
        assert sent.url.path == SIMULATION_PATH
        assert sent.url.params["model"] == "gbm"
        assert sent.url.params["spot"] == "1.3200"
        assert sent.url.params["sigma_gbm"] == "0.1500"

    @pytest.mark.asyncio
    async def test_every_call_hits_service(self, up_request, echo_transport, recorded_requests):
        client = SimulationClient(SIM_BASE_URL, transport=echo_transport)
        await client.call(up_request)
        await client.call(up_request)
        assert len(recorded_requests) == 2

    @pytest.mark.asyncio
    async def test_non_2xx_is_status_error(self, up_request):
        client = _client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(StatusError) as exc_info:
            await client.call(up_request)

        assert exc_info.value.code == 500
        assert exc_info.value.scenario == "Up +20%"
        assert str(exc_info.value).startswith("Scenario Up +20% failed: 500")

    @pytest.mark.asyncio
    async def test_connect_error_is_transport_error(self, up_request):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            await _client(handler).call(up_request)
        assert exc_info.value.scenario == "Up +20%"
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, up_request):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(TransportError, match="timed out"):
            await _client(handler, timeout=0.5).call(up_request)

    @pytest.mark.asyncio
    async def test_invalid_json_is_parse_error(self, up_request):
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(ParseError):
            await client.call(up_request)

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self, up_request):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(TransportError):
            await _client(handler).call(up_request)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_configured_retry_recovers_transport_error(self, up_request):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("blip", request=request)
            return httpx.Response(200, json=stats_payload(1.32))

        client = _client(handler, max_attempts=2, backoff=0)
        result = await client.call(up_request)
        assert len(calls) == 2
        assert result.underlying_stats[-1].mean == pytest.approx(1.32)

    @pytest.mark.asyncio
    async def test_status_errors_never_retried(self, up_request):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        with pytest.raises(StatusError):
            await _client(handler, max_attempts=3, backoff=0).call(up_request)
        assert len(calls) == 1

    def test_url_for(self, up_request):
        client = SimulationClient(SIM_BASE_URL + "/")
        url = client.url_for(up_request)
        assert url.startswith(f"{SIM_BASE_URL}{SIMULATION_PATH}?model=gbm&paths=200&steps=200")
        assert url.endswith("&spot=1.3200&sigma_gbm=0.1500")

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            SimulationClient(SIM_BASE_URL, max_attempts=0)


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


class TestParsePayload:
    def test_valid(self):
        result = parse_stats_payload(stats_payload(1.1, n=4), "Base 0%")
        assert len(result.underlying_stats) == 4
        assert len(result.pv_stats) == 4
        assert result.underlying_stats[0] == StatsPoint(
            time=0.0, mean=1.1, p5=1.1 - 0.1 * 1.1, p95=1.1 + 0.1 * 1.1
        )

    def test_preserves_order(self):
        payload = stats_payload(1.1, n=3)
        payload["underlyingStats"].reverse()
        result = parse_stats_payload(payload, "Base 0%")
        assert [p.time for p in result.underlying_stats] == [1.0, 0.5, 0.0]

    def test_integers_accepted(self):
        payload = {"underlyingStats": [{"time": 0, "mean": 1, "p5": 1, "p95": 1}], "pvStats": []}
        result = parse_stats_payload(payload, "Base 0%")
        assert result.underlying_stats[0].mean == 1.0
        assert result.pv_stats == ()

    @pytest.mark.parametrize("missing", ["underlyingStats", "pvStats"])
    def test_missing_array(self, missing):
        payload = stats_payload(1.1)
        del payload[missing]
        with pytest.raises(ParseError, match=missing):
            parse_stats_payload(payload, "Down -20%")

    def test_array_not_list(self):
        payload = stats_payload(1.1)
        payload["pvStats"] = {"time": 0}
        with pytest.raises(ParseError):
            parse_stats_payload(payload, "Down -20%")

    def test_body_not_object(self):
        with pytest.raises(ParseError):
            parse_stats_payload([1, 2, 3], "Down -20%")

    @pytest.mark.parametrize("bad", ["1.1", None, True, float("nan"), 10**400])
    def test_non_numeric_field(self, bad):
        payload = stats_payload(1.1)
        payload["underlyingStats"][1]["mean"] = bad
        with pytest.raises(ParseError, match=r"underlyingStats\[1\]\.mean"):
            parse_stats_payload(payload, "Down -20%")

    def test_missing_field(self):
        payload = stats_payload(1.1)
        del payload["pvStats"][0]["p95"]
        with pytest.raises(ParseError):
            parse_stats_payload(payload, "Down -20%")

    def test_negative_time(self):
        payload = stats_payload(1.1)
        payload["underlyingStats"][0]["time"] = -0.1
        with pytest.raises(ParseError):
            parse_stats_payload(payload, "Down -20%")

    def test_error_carries_label(self):
        with pytest.raises(ParseError) as exc_info:
            parse_stats_payload({}, "Down -20%")
        assert exc_info.value.scenario == "Down -20%"
        assert str(exc_info.value).startswith("Scenario Down -20% failed:")

    def test_band_order_unchecked_by_default(self):
        payload = stats_payload(1.1)
        payload["underlyingStats"][0]["p5"] = 9.9
        result = parse_stats_payload(payload, "Base 0%")
        assert result.underlying_stats[0].p5 == 9.9

    def test_band_order_checked_when_enabled(self):
        payload = stats_payload(1.1)
        payload["underlyingStats"][0]["p5"] = 9.9
        with pytest.raises(ParseError, match="p5 <= mean <= p95"):
            parse_stats_payload(payload, "Base 0%", validate_bands=True)
