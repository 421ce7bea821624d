"""
Logging for the REST API, the WebSocket gateway and the CLI.

Loggers from get_logger() take structured keyword fields:

    logger.info("Voice joined", connection_id=cid, room_id=3)

Each record also carries the correlation id bound for the current task:
the X-Request-ID of a REST call, or the connection id of the WebSocket
frame being handled (see shared.infrastructure.correlation). Production
renders one JSON object per line; other environments a short coloured line.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

# Bound by CorrelationIdMiddleware (REST) and correlation_scope (gateway)
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS: dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class ChatLogger(logging.Logger):
    """logging.Logger whose level methods accept structured keyword fields."""

    def log_fields(self, level: int, msg: str, /, *args: Any, **fields: Any) -> None:
        if not self.isEnabledFor(level):
            return
        exc_info = fields.pop("exc_info", None)
        self._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra={"fields": fields, "correlation_id": correlation_id_var.get()},
        )

    def debug(self, msg: str, /, *args: Any, **fields: Any) -> None:
        self.log_fields(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, /, *args: Any, **fields: Any) -> None:
        self.log_fields(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, /, *args: Any, **fields: Any) -> None:
        self.log_fields(logging.WARNING, msg, *args, **fields)

    def error(self, msg: str, /, *args: Any, **fields: Any) -> None:
        self.log_fields(logging.ERROR, msg, *args, **fields)

    def critical(self, msg: str, /, *args: Any, **fields: Any) -> None:
        self.log_fields(logging.CRITICAL, msg, *args, **fields)


logging.setLoggerClass(ChatLogger)


class ChatFormatter(logging.Formatter):
    """JSON lines when as_json, otherwise `HH:MM:SS LEVEL [corr] name: msg (k=v ...)`."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, as_json: bool):
        super().__init__()
        self.as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        fields = getattr(record, "fields", None) or {}
        correlation_id = getattr(record, "correlation_id", "")

        if self.as_json:
            entry: dict[str, Any] = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if correlation_id:
                entry["correlation_id"] = correlation_id
            if fields:
                entry["data"] = fields
            if record.exc_info:
                entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(entry, default=str)

        color = self.LEVEL_COLORS.get(record.levelname, "")
        line = f"{color}{datetime.now():%H:%M:%S} {record.levelname:<8}{self.RESET} "
        if correlation_id:
            line += f"[{correlation_id[:8]}] "
        line += f"{record.name}: {record.getMessage()}"
        if fields:
            line += " (" + " ".join(f"{k}={v}" for k, v in fields.items()) + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Called from each lifespan."""
    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ChatFormatter(as_json=settings.environment == "production"))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> ChatLogger:
    """
    Usage:
        logger = get_logger(__name__)
        logger.warning("Message insert failed", room_id=4, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_username(username: str | None) -> str:
    """"alice" -> "al***"; one- and two-letter names keep only the first letter."""
    if not username:
        return "<no-username>"
    if len(username) <= 2:
        return username[0] + "***"
    return f"{username[:2]}***"


rest_api_logger = get_logger("rest_api")
ws_gateway_logger = get_logger("ws_gateway")

# Connection lifecycle and login attempts, kept apart so they can be shipped separately
audit_logger = get_logger("security.audit")


def audit_ws_connection(
    event_type: str,
    endpoint: str,
    connection_id: str | None = None,
    user_id: int | None = None,
    origin: str | None = None,
    reason: str | None = None,
    **extra: Any,
) -> None:
    """
    One audit line per gateway connection event.

    event_type is one of CONNECT, CONNECT_REJECTED, AUTHENTICATED,
    AUTH_FAILED, RATE_LIMITED, DISCONNECT.
    """
    audit_logger.info(
        f"WS_AUDIT: {event_type}",
        event_type=event_type,
        endpoint=endpoint,
        connection_id=connection_id,
        user_id=user_id,
        origin=origin,
        reason=reason,
        **extra,
    )


def audit_auth_event(
    event_type: str,
    user_id: int | None = None,
    username: str | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **extra: Any,
) -> None:
    """REGISTER / LOGIN outcome. Failures go out at WARNING, usernames masked."""
    audit_logger.log_fields(
        logging.INFO if success else logging.WARNING,
        f"AUTH_AUDIT: {event_type}",
        event_type=event_type,
        user_id=user_id,
        username=mask_username(username) if username else None,
        success=success,
        reason=reason,
        ip_address=ip_address,
        **extra,
    )
