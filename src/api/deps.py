from functools import lru_cache

from fastapi import Depends, HTTPException, Request

from src.app_shell.config import Settings
from src.components.projects import ProjectSyncService
from src.rules.loader import load_rules
from src.rules.models import Rules
from src.ui.context import ServiceContext


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Component Services ---
def get_context(request: Request) -> ServiceContext:
    """Service context built during application startup."""
    ctx: ServiceContext | None = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    return ctx


def get_project_service(ctx: ServiceContext = Depends(get_context)) -> ProjectSyncService:
    """Get the project synchronizer."""
    return ctx.service
