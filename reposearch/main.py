"""Repo Search API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RepoSearchError → structured JSON responses
    - Database and GitHub client initialized on startup, closed on shutdown

Design Decisions:
    - Lifespan context manager owns startup/shutdown
    - Tables created on startup when database_auto_create is set (local SQLite);
      deployed Postgres runs alembic instead
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reposearch.api.error_handlers import register_error_handlers
from reposearch.api.routes import health, repo_search
from reposearch.config import get_settings
from reposearch.infrastructure.database import init_db
from reposearch.infrastructure.github_client import init_github_service
from reposearch.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await manager.create_schema()
    service = init_github_service(
        base_url=settings.github_api_url,
        token=settings.github_token,
        max_retries=settings.github_max_retries,
        base_delay_ms=settings.github_base_delay_ms,
        max_delay_ms=settings.github_max_delay_ms,
        timeout_seconds=settings.github_timeout_seconds,
    )
    logger.info("Repo search API started")
    yield
    logger.info("Repo search API shutting down")
    await service.aclose()
    await manager.dispose()


app = FastAPI(
    title="Repo Search Cache API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(repo_search.router)

register_error_handlers(app)
