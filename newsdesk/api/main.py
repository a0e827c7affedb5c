import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from newsdesk.api.deps import get_rules, get_settings, prepare_storage
from newsdesk.components.errors import PersistenceError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("newsdesk")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and prepare storage on startup (fail-fast)
    try:
        rules = get_rules(settings)
        prepare_storage(settings, rules)
        logger.info("Rules loaded from %s", settings.rules_path)
    except (OSError, ValueError, RuntimeError, PersistenceError):
        logger.critical("Startup failed", exc_info=True)
        sys.exit(1)

    yield


app = FastAPI(
    title="Newsdesk API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from newsdesk.api.routes import articles, categories, logs, public, roles, tags  # noqa: E402

app.include_router(articles.router, prefix="/api/v1/articles", tags=["Articles"])
app.include_router(categories.router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(tags.router, prefix="/api/v1/tags", tags=["Tags"])
app.include_router(logs.router, prefix="/api/v1/logs", tags=["Logs"])
app.include_router(roles.router, prefix="/api/v1/roles", tags=["Roles"])
app.include_router(public.router, prefix="/api/v1/public/articles", tags=["Public"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    return {"status": "ok"}
