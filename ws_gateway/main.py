"""
WebSocket Gateway main application.

Hosts the chat session and presence coordination core at /ws/chat.
Clients connect, authenticate in-band, then join rooms, voice channels
and exchange WebRTC signaling through the gateway.

Run with:
    uvicorn ws_gateway.main:app --port 3001
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings
from shared.config.logging import setup_logging, ws_gateway_logger as logger
from shared.utils.health import dependency_report
from rest_api.seed import prepare_database
from ws_gateway.connection_manager import ConnectionManager
from ws_gateway.components.core.constants import WSConstants
from ws_gateway.components.core.errors import PersistenceError
from ws_gateway.components.endpoints.handlers import ChatEndpoint


# Global connection manager
manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    """FastAPI dependency returning the process-wide ConnectionManager."""
    return manager


# =============================================================================
# Lifespan and background tasks
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Before the first upgrade: tables and default rooms exist, no user is
    left marked online from a previous run, and the idle sweep is running.
    On shutdown every socket is closed with 1001.
    """
    setup_logging()
    prepare_database()

    try:
        reset = await manager.store.reset_all_statuses()
    except PersistenceError as e:
        logger.warning("Persisted statuses left as they were", error=e.reason)
    else:
        logger.info("Persisted statuses reset to offline", count=reset)

    sweeper = asyncio.create_task(run_idle_sweep(), name="idle_sweep")
    logger.info("WebSocket Gateway ready", port=settings.ws_gateway_port, env=settings.environment)

    yield

    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    await manager.shutdown()
    logger.info("WebSocket Gateway stopped")


async def run_idle_sweep(interval: float = WSConstants.HEARTBEAT_CLEANUP_INTERVAL) -> None:
    """Close silent connections, reap dead ones and prune the frame limiter."""
    while True:
        await asyncio.sleep(interval)
        try:
            swept = {
                "stale": await manager.cleanup_stale_connections(),
                "dead": await manager.cleanup_dead_connections(),
                "limiter_entries": manager.cleanup_rate_limiter(),
            }
        except Exception as e:
            logger.error("Idle sweep failed", error=str(e), exc_info=True)
            continue
        if any(swept.values()):
            logger.info("Idle sweep", **swept)


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="NeoCord WebSocket Gateway",
    description="Real-time chat, voice presence and WebRTC signaling",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origin_list,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/ws/health")
def health_check(manager: ConnectionManager = Depends(get_connection_manager)):
    """Liveness plus live connection counts; no dependency checks."""
    stats = manager.get_stats()
    return {
        "status": "healthy",
        "service": "ws-gateway",
        "version": app.version,
        "environment": settings.environment,
        "connections": stats["connections"],
        "sessions": stats["sessions"],
        "distinct_users": stats["distinct_users"],
    }


@app.get("/ws/health/detailed")
async def detailed_health_check(manager: ConnectionManager = Depends(get_connection_manager)):
    """Database reachability and full manager stats; 503 unless healthy."""
    return await dependency_report("ws-gateway", connections=manager.get_stats())


# =============================================================================
# WebSocket Endpoints
# =============================================================================


@app.websocket("/ws/chat")
async def chat_websocket(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """WebSocket endpoint for chat clients."""
    endpoint = ChatEndpoint(websocket, manager)
    await endpoint.run()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ws_gateway.main:app",
        host="0.0.0.0",
        port=settings.ws_gateway_port,
        reload=True,
    )
