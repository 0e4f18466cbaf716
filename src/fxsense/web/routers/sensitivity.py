"""Sensitivity run API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from fxsense.config import Settings
from fxsense.sensitivity import ALLOWED_MAGNITUDES
from fxsense.sensitivity.controller import RunController
from fxsense.sensitivity.planner import plan
from fxsense.web.dependencies import get_controller, get_settings
from fxsense.web.schemas import (
    ApiResponse,
    ErrorResponse,
    RunStatusOut,
    ScenarioOut,
    SensitivityRunRequest,
)

router = APIRouter(prefix="/sensitivity", tags=["sensitivity"])


@router.get("/plan", response_model=ApiResponse[list[ScenarioOut]])
async def get_plan(magnitude_pct: int = Query(20, description="10, 20 or 50")):
    """Preview the Down / Base / Up scenarios for a shift magnitude."""
    if magnitude_pct not in ALLOWED_MAGNITUDES:
        raise HTTPException(
            status_code=422,
            detail=f"magnitude_pct must be one of {list(ALLOWED_MAGNITUDES)}",
        )
    return ApiResponse(data=[ScenarioOut.from_domain(s) for s in plan(magnitude_pct)])


@router.post(
    "/run",
    response_model=ApiResponse[RunStatusOut],
    responses={409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def run_sensitivity(
    body: SensitivityRunRequest,
    controller: RunController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
):
    """Run the three-scenario batch and return the published result.

    409 while another run is in flight; 502 when any scenario call fails.
    """
    try:
        params = body.params.to_domain()
        shock = body.shock.to_domain()
        config = body.config.to_domain(settings.default_run_config())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await controller.start(params, shock, config)
    return ApiResponse(data=RunStatusOut.from_domain(controller.status()))


@router.get("/status", response_model=ApiResponse[RunStatusOut])
async def get_status(controller: RunController = Depends(get_controller)):
    """Current run state, published result and last error."""
    return ApiResponse(data=RunStatusOut.from_domain(controller.status()))
