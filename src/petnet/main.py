"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from petnet.auth.router import router as users_router
from petnet.challenges.router import admin_router as admin_challenges_router
from petnet.challenges.router import router as challenges_router
from petnet.community.router import barks_router, pets_router, posts_router
from petnet.config import get_settings
from petnet.database import close_db, init_db
from petnet.health.router import router as health_router
from petnet.leaderboard.router import router as leaderboard_router
from petnet.middleware import setup_middleware
from petnet.redis_client import close_redis, init_redis
from petnet.votes.router import router as votes_router
from petnet.xp.router import router as xp_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("startup_complete", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Petnet API",
        description="Backend API for Petnet, the social network for pets and their people",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(xp_router)
    app.include_router(votes_router)
    app.include_router(leaderboard_router)
    app.include_router(challenges_router)
    app.include_router(admin_challenges_router)
    app.include_router(pets_router)
    app.include_router(posts_router)
    app.include_router(barks_router)

    return app


app = create_app()
