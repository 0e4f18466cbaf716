"""Simulation request shaping.

Applies a scenario's shift factor to the shocked scalar and maps the active
model variant onto the simulation service's query parameters:

  common:  model, paths, steps, maturity, r_dom, r_for, spot
  gbm:     sigma_gbm
  ou:      sigma_ou, kappa, theta
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from decimal import Decimal

from fxsense.sensitivity import (
    GBMParams,
    ModelParameters,
    OUParams,
    RunConfig,
    Scenario,
    ShockSpec,
    ShockTarget,
    SimModel,
)

logger = logging.getLogger(__name__)

SIMULATION_PATH = "/api/simulation/fx-forward-paths"

FIXED_DECIMALS = 4

# Scalar multiplied by the scenario factor, per shock target
SHOCKED_FIELD = {
    ShockTarget.SPOT: "spot",
    ShockTarget.VOL: "sigma",
}


@dataclass(frozen=True)
class SimulationRequest:
    scenario: Scenario
    model: SimModel
    effective_params: ModelParameters
    params: dict[str, str]

    @property
    def label(self) -> str:
        return self.scenario.label


# ---------------------------------------------------------------------------
# Number formatting (wire contract)
# ---------------------------------------------------------------------------


def format_fixed(value: float) -> str:
    """Serialize with exactly four decimals, e.g. 0.132 -> '0.1320'."""
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Cannot serialize non-finite value {value!r}")
    text = f"{value:.{FIXED_DECIMALS}f}"
    # Avoid '-0.0000' for tiny negative values
    if text.lstrip("-") == "0." + "0" * FIXED_DECIMALS:
        return text.lstrip("-")
    return text


def format_plain(value: float) -> str:
    """Shortest round-trip decimal in positional notation.

    Integral values drop the fraction (3.0 -> '3') and small values never
    switch to exponent form (5e-05 -> '0.00005').
    """
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Cannot serialize non-finite value {value!r}")
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


# ---------------------------------------------------------------------------
# Effective parameters
# ---------------------------------------------------------------------------


def apply_shock(
    params: ModelParameters, target: ShockTarget, factor: float
) -> ModelParameters:
    """Return a copy of ``params`` with only the targeted scalar scaled by ``factor``."""
    field_name = SHOCKED_FIELD[ShockTarget(target)]
    if factor == 1:
        return params
    return dataclasses.replace(params, **{field_name: getattr(params, field_name) * factor})


def _model_fields(params: ModelParameters) -> dict[str, str]:
    """Model-specific query fields; every variant must be handled here."""
    if isinstance(params, GBMParams):
        return {"sigma_gbm": format_fixed(params.sigma)}
    if isinstance(params, OUParams):
        return {
            "sigma_ou": format_fixed(params.sigma),
            "kappa": format_plain(params.kappa),
            "theta": format_plain(params.theta),
        }
    raise TypeError(f"Unsupported model parameters: {type(params).__name__}")


def build_request(
    scenario: Scenario,
    base_params: ModelParameters,
    shock: ShockSpec,
    config: RunConfig,
) -> SimulationRequest:
    """Build the simulation request for one scenario.

    Args:
        scenario: Scenario whose shift factor is applied.
        base_params: Unshocked model parameters for the run.
        shock: Which scalar (spot or volatility) receives the shift.
        config: Run-wide maturity, rates and resolution.

    Returns:
        SimulationRequest with effective parameters and ordered query params.
    """
    effective = apply_shock(base_params, shock.target, scenario.shift_factor)
    model_fields = _model_fields(effective)

    params = {
        "model": effective.model.value,
        "paths": str(int(config.paths)),
        "steps": str(int(config.steps)),
        "maturity": format_plain(config.maturity),
        "r_dom": format_plain(config.r_dom),
        "r_for": format_plain(config.r_for),
        "spot": format_fixed(effective.spot),
    }
    params.update(model_fields)

    logger.debug("Built %s request for %s: %s", effective.model.value, scenario.label, params)
    return SimulationRequest(
        scenario=scenario,
        model=effective.model,
        effective_params=effective,
        params=params,
    )
