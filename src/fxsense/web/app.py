"""FastAPI application factory for the fxsense API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fxsense.config import Settings
from fxsense.sensitivity.controller import RunController
from fxsense.sensitivity.errors import ConcurrentRunRejected, SimulationError

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build the run controller if none was injected."""
    settings = app.state.settings
    logger.info("Starting fxsense API...")

    if getattr(app.state, "controller", None) is None:
        from fxsense.sensitivity.controller import create_controller

        app.state.controller = create_controller(settings)

    logger.info("fxsense API ready (simulation service: %s)", settings.simulation_base_url)
    yield
    logger.info("fxsense API shutdown complete")


def create_app(
    settings: Settings | None = None, controller: RunController | None = None
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="fxsense API",
        description="FX forward sensitivity analysis - spot/volatility shocks under GBM and OU",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.controller = controller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept"],
    )

    _register_exception_handlers(app)
    _register_routers(app)

    return app


def _register_exception_handlers(app: FastAPI):
    @app.exception_handler(ConcurrentRunRejected)
    async def concurrent_run_handler(request: Request, exc: ConcurrentRunRejected):
        return JSONResponse(
            status_code=409,
            content={"error": {"code": "run_in_progress", "message": str(exc),
                               "run_id": exc.run_id}},
        )

    @app.exception_handler(SimulationError)
    async def simulation_error_handler(request: Request, exc: SimulationError):
        detail = {"code": "simulation_failed", "message": exc.message,
                  "scenario": exc.scenario}
        status_code = getattr(exc, "code", None)
        if status_code is not None:
            detail["upstream_status"] = status_code
        return JSONResponse(status_code=502, content={"error": detail})


def _register_routers(app: FastAPI):
    """Register all API routers."""
    from fxsense.web.routers.sensitivity import router as sensitivity_router
    from fxsense.web.routers.system import router as system_router

    app.include_router(sensitivity_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")
