import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.deps import get_settings
from src.app_shell.config import validate_ops_rules
from src.rules.loader import load_rules
from src.ui.context import ServiceContext

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.backend, settings.environ)
    except Exception:
        logger.critical("Startup configuration failed", exc_info=True)
        raise
    logger.info("Rules loaded from %s", settings.rules_path)

    app.state.context = await ServiceContext.create(settings, rules)
    logger.info("Project service ready (backend=%s)", settings.backend)

    yield

    released = app.state.context.previews.release_all()
    if released:
        logger.warning("Released %d preview(s) left open at shutdown", released)


app = FastAPI(
    title="Project Images API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import projects  # noqa: E402

app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])

# Local backend serves stored objects itself
_settings = get_settings()
if _settings.backend == "local":
    app.mount(
        "/media", StaticFiles(directory=_settings.media_dir, check_dir=False), name="media"
    )


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
