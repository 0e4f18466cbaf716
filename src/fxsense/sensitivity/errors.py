"""Error taxonomy for sensitivity runs."""


class SensitivityError(Exception):
    """Base class for all sensitivity-run errors."""


class ConcurrentRunRejected(SensitivityError):
    """A run was started while another run is still in flight."""

    def __init__(self, run_id: int):
        self.run_id = run_id
        super().__init__(f"Run {run_id} is still running; wait for it to finish")


class SimulationError(SensitivityError):
    """A single scenario call to the simulation service failed.

    Carries the failing scenario's label so the analyst can tell which leg
    of the shift triggered the failure.
    """

    def __init__(self, scenario: str, cause: str):
        self.scenario = scenario
        self.cause = cause
        super().__init__(f"Scenario {scenario} failed: {cause}")

    @property
    def message(self) -> str:
        return str(self)


class TransportError(SimulationError):
    """Connection failure, DNS failure or request timeout."""


class StatusError(SimulationError):
    """The service answered with a non-2xx status."""

    def __init__(self, scenario: str, code: int, detail: str = ""):
        self.code = code
        cause = f"{code}" if not detail else f"{code} ({detail})"
        super().__init__(scenario, cause)


class ParseError(SimulationError):
    """The response body does not match the expected stats shape."""
