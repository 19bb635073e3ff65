"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.error_handlers import register_exception_handlers
from app.api.routers import get_api_router
from app.core.config import AppSettings, get_settings
from app.core.database import engine
from app.core.logging import configure_logging
from app.models import Base
from app.services.enforcer import close_enforcer
from app.services.users import close_user_service


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: D401
    """Application lifespan context for startup/shutdown hooks."""

    settings = get_settings()
    # Deployed environments are migrated with Alembic.
    if settings.environment in ("local", "test"):
        Base.metadata.create_all(bind=engine)
    logging.getLogger("app.main").info(
        "service_started",
        extra={"environment": settings.environment, "authorizer_configured": bool(settings.authorizer_url)},
    )

    yield

    close_enforcer()
    close_user_service()
    logging.getLogger("app.main").info("service_stopped")


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Application factory."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Resource Group Access",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.include_router(get_api_router())
    return app
