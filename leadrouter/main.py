"""LeadRouter — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadrouter.adapters.persistence.database import engine
from leadrouter.adapters.scheduler.allocation_scheduler import allocation_scheduler
from leadrouter.config import settings
from leadrouter.infrastructure.api.routes_allocation import router as allocation_router
from leadrouter.infrastructure.api.routes_health import router as health_router
from leadrouter.infrastructure.api.routes_rules import router as rules_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)

    if settings.scheduler_enabled:
        allocation_scheduler.start()
    yield
    allocation_scheduler.stop()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="LeadRouter — CRM lead allocation engine",
        description="Rule-based and load-balanced assignment of leads to sales workers",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS for the CRM web frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")
    app.include_router(allocation_router, prefix="/api")

    return app


app = create_app()
