"""System endpoints: health check."""

from fastapi import APIRouter, Depends

from fxsense.config import Settings
from fxsense.web.dependencies import get_settings
from fxsense.web.schemas import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)):
    """API health check."""
    from fxsense.web.app import API_VERSION

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        simulation_base_url=settings.simulation_base_url,
    )
