"""FastAPI dependency injection providers."""

from fastapi import Request

from fxsense.config import Settings
from fxsense.sensitivity.controller import RunController


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    return request.app.state.settings


def get_controller(request: Request) -> RunController:
    """Get the process-wide run controller from app state."""
    return request.app.state.controller
