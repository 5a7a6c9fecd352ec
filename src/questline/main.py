"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from questline.catalog.router import router as catalog_router
from questline.config import get_settings
from questline.database import close_db, get_session_factory, init_db
from questline.gamification.router import router as badges_router
from questline.gamification.seed import seed_badges
from questline.health.router import router as health_router
from questline.middleware import setup_middleware
from questline.progress.router import router as progress_router
from questline.redis_client import close_redis, init_redis
from questline.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
    if settings.redis_enabled:
        await init_redis(settings.redis_url, settings.redis_max_connections)

    # Seed badge definitions (idempotent)
    if settings.seed_badges_on_startup:
        try:
            async with get_session_factory()() as db:
                await seed_badges(db)
        except SQLAlchemyError:
            logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Questline API",
        description="Progress and reward service for the Questline learning platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(catalog_router)
    app.include_router(progress_router)
    app.include_router(badges_router)

    return app


app = create_app()
