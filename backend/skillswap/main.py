"""
SkillSwap API - FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from skillswap.config import get_settings
from skillswap.database.connection import close_db, init_db
from skillswap.utils.logger import get_logger, setup_logging

# Import models so Base.metadata has all tables before init_db()
import skillswap.models  # noqa: F401

from skillswap.api.routes import auth, skills, matches, swaps, conversations, notifications
from skillswap.api.middleware.error_handler import register_exception_handlers
from skillswap.services.swaps.expiry import ExpirySweeper, sweep_with_new_session

logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: init DB, start the expiry sweeper. Shutdown: stop it, close pool."""
    setup_logging()
    sweeper = None
    try:
        await init_db()
        logger.info("Application started")
    except Exception as e:
        logger.warning(
            "Database connection failed at startup. Start PostgreSQL and check DATABASE_URL. Error: %s",
            e,
        )
    else:
        if settings.expiry_sweep_enabled:
            sweeper = ExpirySweeper(sweep_with_new_session, settings.expiry_sweep_interval_seconds)
            sweeper.start()
    yield
    if sweeper is not None:
        await sweeper.stop()
    await close_db()
    logger.info("Application shutdown")


def create_application() -> FastAPI:
    app = FastAPI(
        title="SkillSwap API",
        description="Peer-to-peer skill exchange: fair matching, assessed skills and swap requests",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Rate limiting (applied per-route for auth vs API limits)
    register_exception_handlers(app)

    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix + "/auth", tags=["auth"])
    app.include_router(skills.router, prefix=prefix + "/skills", tags=["skills"])
    app.include_router(matches.router, prefix=prefix + "/matches", tags=["matches"])
    app.include_router(swaps.router, prefix=prefix + "/swaps", tags=["swaps"])
    app.include_router(conversations.router, prefix=prefix + "/conversations", tags=["conversations"])
    app.include_router(notifications.router, prefix=prefix + "/notifications", tags=["notifications"])
    app.include_router(notifications.badges_router, prefix=prefix + "/badges", tags=["notifications"])

    @app.get("/")
    async def root():
        """Redirect to API docs."""
        return RedirectResponse(url="/docs")

    @app.get("/health")
    async def health():
        """Health check for load balancers and monitoring."""
        return {"status": "ok"}

    return app


app = create_application()
