"""
REST API startup and shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from rest_api.seed import prepare_database


def check_settings() -> None:
    """Log every misconfiguration; in production refuse to start on any."""
    problems = settings.validate_production_settings()
    for problem in problems:
        logger.error("Configuration error", error=problem)
    if problems and settings.environment == "production":
        raise RuntimeError("Refusing to start: " + "; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_settings()

    rooms_created = prepare_database()
    logger.info(
        "REST API ready",
        port=settings.rest_api_port,
        env=settings.environment,
        rooms_created=rooms_created,
    )

    yield

    logger.info("REST API stopped")
