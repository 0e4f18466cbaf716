"""FX forward sensitivity orchestration package.

Turns a base parameter set plus a single-parameter shock into three
comparable scenarios (Down / Base / Up), requests simulated path statistics
for each from the external simulation service, and combines the responses
into scenario-tagged series:
- planner: scenario shift factors and labels
- request_builder: effective parameters and wire-format query
- client: HTTP call + response parsing
- aggregator: scenario tagging and concatenation
- controller: run state machine (fail-fast, atomic publish)
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Union


class SimModel(str, Enum):
    GBM = "gbm"
    OU = "ou"


class ShockTarget(str, Enum):
    SPOT = "spot"
    VOL = "vol"


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ALLOWED_MAGNITUDES = (10, 20, 50)


def _require_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a finite number > 0, got {value!r}")


# ---------------------------------------------------------------------------
# Model parameters (tagged variant)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GBMParams:
    """Geometric Brownian Motion: dS = mu*S*dt + sigma*S*dW."""

    model: ClassVar[SimModel] = SimModel.GBM

    spot: float
    sigma: float
    mu: float = 0.05

    def __post_init__(self):
        _require_positive("spot", self.spot)
        _require_positive("sigma", self.sigma)


@dataclass(frozen=True)
class OUParams:
    """Ornstein-Uhlenbeck: dS = kappa*(theta - S)*dt + sigma*dW."""

    model: ClassVar[SimModel] = SimModel.OU

    spot: float
    kappa: float
    theta: float
    sigma: float

    def __post_init__(self):
        _require_positive("spot", self.spot)
        _require_positive("kappa", self.kappa)
        _require_positive("sigma", self.sigma)


ModelParameters = Union[GBMParams, OUParams]


# ---------------------------------------------------------------------------
# Run inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    """Economic and resolution settings shared by every scenario of a run."""

    maturity: float = 1.0
    r_dom: float = 0.03
    r_for: float = 0.01
    paths: int = 200
    steps: int = 200

    def __post_init__(self):
        _require_positive("maturity", self.maturity)
        if self.paths < 1 or self.steps < 1:
            raise ValueError(f"paths and steps must be >= 1, got {self.paths}/{self.steps}")


@dataclass(frozen=True)
class ShockSpec:
    target: ShockTarget
    magnitude_pct: int

    def __post_init__(self):
        # Accept plain strings ("spot"/"vol") from callers
        object.__setattr__(self, "target", ShockTarget(self.target))
        if isinstance(self.magnitude_pct, bool) or self.magnitude_pct not in ALLOWED_MAGNITUDES:
            raise ValueError(
                f"magnitude_pct must be one of {ALLOWED_MAGNITUDES}, got {self.magnitude_pct!r}"
            )
        object.__setattr__(self, "magnitude_pct", int(self.magnitude_pct))


@dataclass(frozen=True)
class Scenario:
    label: str
    shift_factor: float
    is_base: bool


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatsPoint:
    time: float
    mean: float
    p5: float
    p95: float


@dataclass(frozen=True)
class TaggedStatsPoint:
    time: float
    mean: float
    p5: float
    p95: float
    scenario: str


@dataclass(frozen=True)
class RawScenarioResult:
    """Parsed simulation-service response for one scenario."""

    underlying_stats: tuple[StatsPoint, ...]
    pv_stats: tuple[StatsPoint, ...]


@dataclass(frozen=True)
class SensitivityResult:
    underlying: tuple[TaggedStatsPoint, ...] = ()
    present_value: tuple[TaggedStatsPoint, ...] = ()

    @property
    def scenarios(self) -> list[str]:
        """Scenario labels in first-seen order."""
        seen: list[str] = []
        for point in self.underlying + self.present_value:
            if point.scenario not in seen:
                seen.append(point.scenario)
        return seen


@dataclass(frozen=True)
class RunStatus:
    """Read-only snapshot of the controller for the presentation layer."""

    run_id: int
    state: RunState
    result: SensitivityResult | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    scenarios: tuple[Scenario, ...] = ()


__all__ = [
    "ALLOWED_MAGNITUDES",
    "GBMParams",
    "ModelParameters",
    "OUParams",
    "RawScenarioResult",
    "RunConfig",
    "RunState",
    "RunStatus",
    "Scenario",
    "SensitivityResult",
    "ShockSpec",
    "ShockTarget",
    "SimModel",
    "StatsPoint",
    "TaggedStatsPoint",
]
