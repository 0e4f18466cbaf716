"""Sensitivity run state machine.

    idle ──start──> running ──all 3 ok──> succeeded
                       │
                       └──any failure──> failed

A new start from succeeded/failed re-enters running. A start while
running is rejected. The published result is cleared when a run begins and
replaced only once all three scenarios have succeeded.
"""

import asyncio
import logging
from datetime import datetime, timezone

from fxsense.sensitivity import (
    ModelParameters,
    RawScenarioResult,
    RunConfig,
    RunState,
    RunStatus,
    Scenario,
    SensitivityResult,
    ShockSpec,
)
from fxsense.sensitivity.aggregator import aggregate
from fxsense.sensitivity.client import SimulationClient
from fxsense.sensitivity.errors import ConcurrentRunRejected, SimulationError
from fxsense.sensitivity.planner import plan
from fxsense.sensitivity.request_builder import build_request

logger = logging.getLogger(__name__)


class RunController:
    """Sole owner of run state and the published SensitivityResult."""

    def __init__(self, client: SimulationClient, parallel: bool = False):
        self.client = client
        self.parallel = parallel
        self._state = RunState.IDLE
        self._run_id = 0
        self._result: SensitivityResult | None = None
        self._error: BaseException | None = None
        self._error_message: str | None = None
        self._scenarios: tuple[Scenario, ...] = ()
        self._started_at: datetime | None = None
        self._finished_at: datetime | None = None

    # -- read-only views ---------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def result(self) -> SensitivityResult | None:
        return self._result

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def run_id(self) -> int:
        return self._run_id

    def status(self) -> RunStatus:
        return RunStatus(
            run_id=self._run_id,
            state=self._state,
            result=self._result,
            error_message=self._error_message,
            started_at=self._started_at,
            finished_at=self._finished_at,
            scenarios=self._scenarios,
        )

    # -- transitions -------------------------------------------------------

    async def start(
        self, params: ModelParameters, shock: ShockSpec, config: RunConfig
    ) -> SensitivityResult:
        """Run the three-scenario batch and publish the aggregated result.

        Raises:
            ConcurrentRunRejected: a run is already in flight.
            SimulationError: a scenario call failed (state becomes failed).
        """
        # No await between the check and the transition
        if self._state == RunState.RUNNING:
            logger.warning("Rejected start: run %d still running", self._run_id)
            raise ConcurrentRunRejected(self._run_id)

        self._run_id += 1
        self._state = RunState.RUNNING
        self._result = None
        self._error = None
        self._error_message = None
        self._scenarios = ()
        self._started_at = datetime.now(timezone.utc)
        self._finished_at = None

        run_id = self._run_id
        try:
            logger.info(
                "Run %d started: model=%s shock=%s ±%d%% (%s)",
                run_id, params.model.value, shock.target.value, shock.magnitude_pct,
                "parallel" if self.parallel else "sequential",
            )
            scenarios = plan(shock.magnitude_pct)
            self._scenarios = tuple(scenarios)
            if self.parallel:
                raws = await self._run_parallel(scenarios, params, shock, config)
            else:
                raws = await self._run_sequential(scenarios, params, shock, config)
        except SimulationError as e:
            self._fail(e, e.message)
            raise
        except asyncio.CancelledError as e:
            self._fail(e, "Run cancelled")
            raise
        except Exception as e:
            self._fail(e, f"Run failed: {e}")
            raise

        result = aggregate([(s.label, raw) for s, raw in zip(scenarios, raws)])
        self._result = result
        self._state = RunState.SUCCEEDED
        self._finished_at = datetime.now(timezone.utc)
        logger.info(
            "Run %d succeeded: %d underlying / %d pv points",
            run_id, len(result.underlying), len(result.present_value),
        )
        return result

    def _fail(self, error: BaseException, message: str) -> None:
        self._result = None
        self._error = error
        self._error_message = message
        self._state = RunState.FAILED
        self._finished_at = datetime.now(timezone.utc)
        logger.error("Run %d failed: %s", self._run_id, message, exc_info=True)

    async def _run_scenario(
        self,
        scenario: Scenario,
        params: ModelParameters,
        shock: ShockSpec,
        config: RunConfig,
    ) -> RawScenarioResult:
        request = build_request(scenario, params, shock, config)
        return await self.client.call(request)

    async def _run_sequential(self, scenarios, params, shock, config) -> list[RawScenarioResult]:
        raws = []
        for scenario in scenarios:
            raws.append(await self._run_scenario(scenario, params, shock, config))
        return raws

    async def _run_parallel(self, scenarios, params, shock, config) -> list[RawScenarioResult]:
        tasks = [
            asyncio.ensure_future(self._run_scenario(s, params, shock, config))
            for s in scenarios
        ]
        try:
            # gather preserves input order regardless of completion order
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


def create_controller(settings) -> RunController:
    """Build a controller and its simulation client from Settings."""
    client = SimulationClient(
        base_url=settings.simulation_base_url,
        timeout=settings.simulation_timeout,
        max_attempts=settings.simulation_max_attempts,
        backoff=settings.simulation_retry_backoff,
        validate_bands=settings.simulation_validate_bands,
    )
    return RunController(client, parallel=settings.simulation_parallel)
