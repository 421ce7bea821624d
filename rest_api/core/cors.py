"""
CORS for the REST API.

The browser client calls /api from the same origins that may open /ws/chat,
so both services read Settings.origin_list.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings


def configure_cors(app: FastAPI) -> None:
    # Register, login and room reads: JSON bodies only, no cookies or auth headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origin_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=0 if settings.debug else 600,
    )
