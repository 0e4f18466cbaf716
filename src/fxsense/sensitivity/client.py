"""HTTP client for the external FX path simulation service."""

import logging
import math
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fxsense.sensitivity import RawScenarioResult, StatsPoint
from fxsense.sensitivity.errors import ParseError, StatusError, TransportError
from fxsense.sensitivity.request_builder import SIMULATION_PATH, SimulationRequest

logger = logging.getLogger(__name__)

STATS_FIELDS = ("time", "mean", "p5", "p95")


class SimulationClient:
    """Single-shot client for ``GET /api/simulation/fx-forward-paths``.

    Every call opens its own connection and reflects the request's current
    parameters; nothing is cached. Retries are off unless ``max_attempts``
    is raised, and only transport failures are retried.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_attempts: int = 1,
        backoff: float = 0.5,
        validate_bands: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._validate_bands = validate_bands
        self._transport = transport

    def url_for(self, request: SimulationRequest) -> str:
        """Full request URL, for display and logging."""
        return str(httpx.URL(self.base_url + SIMULATION_PATH, params=request.params))

    async def call(self, request: SimulationRequest) -> RawScenarioResult:
        """Issue one scenario request and parse the stats payload.

        Raises:
            TransportError: connection failure or timeout.
            StatusError: non-2xx response.
            ParseError: body is not the expected stats shape.
        """

        @retry(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff, max=10),
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _inner():
            return await self._fetch(request)

        return await _inner()

    async def _fetch(self, request: SimulationRequest) -> RawScenarioResult:
        label = request.label
        logger.debug("Requesting scenario %s: %s", label, self.url_for(request))

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(SIMULATION_PATH, params=request.params)
        except httpx.TimeoutException as e:
            raise TransportError(label, f"timed out after {self._timeout}s") from e
        except httpx.TransportError as e:
            raise TransportError(label, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise StatusError(label, response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(label, f"invalid JSON body ({e})") from e

        result = parse_stats_payload(payload, label, validate_bands=self._validate_bands)
        logger.debug(
            "Scenario %s: %d underlying / %d pv points",
            label, len(result.underlying_stats), len(result.pv_stats),
        )
        return result


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def parse_stats_payload(
    payload: Any, label: str, validate_bands: bool = False
) -> RawScenarioResult:
    """Parse ``{underlyingStats: [...], pvStats: [...]}`` into a RawScenarioResult.

    Args:
        payload: Decoded JSON body.
        label: Scenario label, used in error messages.
        validate_bands: Also reject points where p5 <= mean <= p95 fails.

    Raises:
        ParseError: missing arrays, non-numeric fields or negative time.
    """
    if not isinstance(payload, dict):
        raise ParseError(label, "response body is not a JSON object")

    return RawScenarioResult(
        underlying_stats=_parse_series(payload, "underlyingStats", label, validate_bands),
        pv_stats=_parse_series(payload, "pvStats", label, validate_bands),
    )


def _parse_series(
    payload: dict[str, Any], key: str, label: str, validate_bands: bool
) -> tuple[StatsPoint, ...]:
    series = payload.get(key)
    if not isinstance(series, list):
        raise ParseError(label, f"missing or non-array '{key}'")

    points = []
    for i, item in enumerate(series):
        if not isinstance(item, dict):
            raise ParseError(label, f"{key}[{i}] is not an object")

        values = {}
        for name in STATS_FIELDS:
            value = item.get(name)
            if not _is_number(value):
                raise ParseError(label, f"{key}[{i}].{name} is not numeric: {value!r}")
            values[name] = float(value)

        if values["time"] < 0:
            raise ParseError(label, f"{key}[{i}].time is negative: {values['time']}")
        if validate_bands and not values["p5"] <= values["mean"] <= values["p95"]:
            raise ParseError(
                label,
                f"{key}[{i}] violates p5 <= mean <= p95: "
                f"{values['p5']}, {values['mean']}, {values['p95']}",
            )

        points.append(StatsPoint(**values))

    return tuple(points)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        number = float(value)
    except OverflowError:
        return False
    return math.isfinite(number)
