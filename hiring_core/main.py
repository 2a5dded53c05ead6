"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hiring_core.core.config import settings
from hiring_core.errors import AppError, app_error_handler
from hiring_core.routers import application, approval, health, job, offer, score

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s", settings.APP_NAME)
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


def create_app() -> FastAPI:
    """Build the API application with every router and the error handler."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Hiring pipeline workflow core: stages, offers, approvals and ratings",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(AppError, app_error_handler)

    app.include_router(health.router)
    app.include_router(application.router)
    app.include_router(job.router)
    app.include_router(offer.router)
    app.include_router(approval.router)
    app.include_router(score.router)
    return app


app = create_app()
