"""Pydantic request/response schemas for the fxsense API."""

from datetime import datetime, timezone
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from fxsense.display import scenario_color
from fxsense.sensitivity import (
    GBMParams,
    OUParams,
    RunConfig,
    RunState,
    RunStatus,
    Scenario,
    SensitivityResult,
    ShockSpec,
    ShockTarget,
)

T = TypeVar("T")


# --- Base schemas ---


class Meta(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ApiResponse(BaseModel, Generic[T]):
    data: T
    meta: Meta = Field(default_factory=Meta)


class ErrorResponse(BaseModel):
    error: dict[str, Any] = Field(
        description="Error details with code, message, and optional detail"
    )


class HealthResponse(BaseModel):
    status: str
    version: str
    simulation_base_url: str


# --- Run inputs ---


class GBMParamsIn(BaseModel):
    model: Literal["gbm"]
    spot: float = Field(gt=0, description="Initial FX spot")
    sigma: float = Field(gt=0, description="Annualised volatility")
    mu: float = Field(0.05, description="Drift (not sent to the simulation service)")

    def to_domain(self) -> GBMParams:
        return GBMParams(spot=self.spot, sigma=self.sigma, mu=self.mu)


class OUParamsIn(BaseModel):
    model: Literal["ou"]
    spot: float = Field(gt=0, description="Initial FX spot")
    kappa: float = Field(gt=0, description="Mean reversion speed")
    theta: float = Field(description="Long-term mean level")
    sigma: float = Field(gt=0, description="Volatility")

    def to_domain(self) -> OUParams:
        return OUParams(spot=self.spot, kappa=self.kappa, theta=self.theta, sigma=self.sigma)


ModelParamsIn = Annotated[Union[GBMParamsIn, OUParamsIn], Field(discriminator="model")]


class ShockSpecIn(BaseModel):
    target: ShockTarget = Field(description="Parameter to shock: spot or vol")
    magnitude_pct: Literal[10, 20, 50] = Field(description="Symmetric shift in percent")

    def to_domain(self) -> ShockSpec:
        return ShockSpec(target=self.target, magnitude_pct=self.magnitude_pct)


class RunConfigIn(BaseModel):
    """Unset fields fall back to server settings."""

    maturity: float | None = Field(None, gt=0, description="Maturity in years")
    r_dom: float | None = Field(None, description="Domestic rate")
    r_for: float | None = Field(None, description="Foreign rate")
    paths: int | None = Field(None, ge=1, le=100_000)
    steps: int | None = Field(None, ge=1, le=10_000)

    def to_domain(self, defaults: RunConfig) -> RunConfig:
        values = {
            "maturity": defaults.maturity,
            "r_dom": defaults.r_dom,
            "r_for": defaults.r_for,
            "paths": defaults.paths,
            "steps": defaults.steps,
        }
        values.update(self.model_dump(exclude_none=True))
        return RunConfig(**values)


class SensitivityRunRequest(BaseModel):
    params: ModelParamsIn
    shock: ShockSpecIn
    config: RunConfigIn = Field(default_factory=RunConfigIn)


# --- Run outputs ---


class ScenarioOut(BaseModel):
    label: str
    shift_factor: float
    is_base: bool
    color: str | None = Field(None, description="Chart colour for this scenario")

    @classmethod
    def from_domain(cls, scenario: Scenario) -> "ScenarioOut":
        return cls(
            label=scenario.label,
            shift_factor=scenario.shift_factor,
            is_base=scenario.is_base,
            color=scenario_color(scenario.label, hex_code=True),
        )


class StatsPointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: float
    mean: float
    p5: float
    p95: float
    scenario: str


class SensitivityResultOut(BaseModel):
    scenarios: list[str]
    underlying: list[StatsPointOut]
    present_value: list[StatsPointOut]

    @classmethod
    def from_domain(cls, result: SensitivityResult) -> "SensitivityResultOut":
        return cls(
            scenarios=result.scenarios,
            underlying=[StatsPointOut.model_validate(p) for p in result.underlying],
            present_value=[StatsPointOut.model_validate(p) for p in result.present_value],
        )


class RunStatusOut(BaseModel):
    run_id: int
    state: RunState
    scenarios: list[ScenarioOut] = []
    result: SensitivityResultOut | None = None
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @classmethod
    def from_domain(cls, status: RunStatus) -> "RunStatusOut":
        return cls(
            run_id=status.run_id,
            state=status.state,
            scenarios=[ScenarioOut.from_domain(s) for s in status.scenarios],
            result=(
                SensitivityResultOut.from_domain(status.result)
                if status.result is not None else None
            ),
            error=status.error_message,
            started_at=status.started_at,
            finished_at=status.finished_at,
        )
