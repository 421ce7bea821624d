"""
Dependency health for /api/health/detailed and /ws/health/detailed.

A check is an async function returning optional details; wrapping it with
health_check_with_timeout turns any failure or overrun into an UNHEALTHY
result, so a report is always produced:

    @health_check_with_timeout(timeout=3.0, component="database")
    async def check_database_health():
        return {"dialect": "sqlite"}
"""

from __future__ import annotations

import asyncio
import functools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine

from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class HealthCheckResult:
    status: HealthStatus
    component: str
    latency_ms: float = 0.0
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status.value, "latency_ms": round(self.latency_ms, 2)}
        if self.error:
            body["error"] = self.error
        if self.details:
            body["details"] = self.details
        return body


def health_check_with_timeout(timeout: float = 5.0, component: str | None = None):
    def decorator(
        check: Callable[..., Awaitable[dict[str, Any] | None]]
    ) -> Callable[..., Coroutine[Any, Any, HealthCheckResult]]:
        name = component or check.__name__.removeprefix("check_").removesuffix("_health")

        @functools.wraps(check)
        async def run(*args: Any, **kwargs: Any) -> HealthCheckResult:
            started = time.perf_counter()
            status, error, details = HealthStatus.HEALTHY, None, None
            try:
                details = await asyncio.wait_for(check(*args, **kwargs), timeout=timeout)
            except asyncio.TimeoutError:
                status, error = HealthStatus.UNHEALTHY, f"timeout after {timeout}s"
            except Exception as e:
                status, error = HealthStatus.UNHEALTHY, str(e)

            if error:
                logger.warning("Dependency unhealthy", component=name, error=error)
            return HealthCheckResult(
                status=status,
                component=name,
                latency_ms=(time.perf_counter() - started) * 1000,
                error=error,
                details=details or {},
            )

        return run
    return decorator


def _ping_database() -> dict[str, Any]:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))
        return {"dialect": db.get_bind().dialect.name}


@health_check_with_timeout(timeout=3.0, component="database")
async def check_database_health() -> dict[str, Any]:
    return await asyncio.to_thread(_ping_database)


async def aggregate_health_checks(
    checks: list[Coroutine[Any, Any, HealthCheckResult]],
) -> dict[str, Any]:
    """{"status": "healthy" | "degraded", "components": {name: result}}"""
    results = await asyncio.gather(*checks)
    healthy = all(r.status == HealthStatus.HEALTHY for r in results)
    return {
        "status": (HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED).value,
        "components": {r.component: r.to_dict() for r in results},
    }


async def dependency_report(service: str, **extra: Any) -> dict[str, Any] | JSONResponse:
    """Detailed health body for a service; served with 503 unless every check passed."""
    health = await aggregate_health_checks([check_database_health()])
    body = {
        "service": service,
        "environment": settings.environment,
        "status": health["status"],
        **extra,
        "dependencies": health["components"],
    }
    if health["status"] != HealthStatus.HEALTHY.value:
        return JSONResponse(content=body, status_code=503)
    return body
