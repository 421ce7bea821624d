"""
REST API health: liveness at /api/health, database reachability at /api/health/detailed.
"""

from fastapi import APIRouter

from shared.config.settings import settings
from shared.utils.health import dependency_report


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


@router.get("/health/detailed")
async def detailed_health_check():
    return await dependency_report("rest-api")
