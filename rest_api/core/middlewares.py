"""
Request and response plumbing for the REST API.

Outermost first: CorrelationIdMiddleware tags the call with X-Request-ID,
JsonApiMiddleware refuses non-JSON bodies and adds the browser hardening
headers to whatever the routers return.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware

HARDENING_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS = "max-age=31536000; includeSubDomains"


class JsonApiMiddleware(BaseHTTPMiddleware):
    """415 for a POST body declared as anything but JSON."""

    async def dispatch(self, request: Request, call_next):
        content_type = request.headers.get("content-type")
        if request.method == "POST" and content_type and not content_type.startswith("application/json"):
            response = JSONResponse(
                status_code=415,
                content={"detail": "Unsupported Media Type. Use application/json"},
            )
        else:
            response = await call_next(request)

        response.headers.update(HARDENING_HEADERS)
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = HSTS
        return response


def register_middlewares(app: FastAPI) -> None:
    # add_middleware wraps, so the last one added runs first
    app.add_middleware(JsonApiMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
