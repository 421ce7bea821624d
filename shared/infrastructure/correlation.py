"""
Correlation ids for log lines.

A REST call is tagged with its X-Request-ID (the client's, or a fresh uuid4
echoed back in the response). A gateway frame is tagged with the connection
id that sent it. Either way the id lands in correlation_id_var, which
ChatLogger copies onto every record.
"""

import uuid
from contextlib import contextmanager
from typing import Callable, Iterator

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.logging import correlation_id_var


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[None]:
    """
    Usage:
        with correlation_scope(connection_id):
            await handle(frame)
    """
    token = correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        correlation_id_var.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each REST call with X-Request-ID for its whole duration."""

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())

        with correlation_scope(request_id):
            response = await call_next(request)
        response.headers[self.HEADER_NAME] = request_id
        return response
