"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Browser origins of the bundled client and the Vite dev server
LOCAL_ORIGINS: tuple[str, ...] = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    # SQLite file next to the process by default; any SQLAlchemy URL works
    database_url: str = "sqlite:///./neocord.db"

    # Comma-separated browser origins for CORS and the WebSocket upgrade (empty: LOCAL_ORIGINS)
    allowed_origins: str = ""

    # Server ports
    rest_api_port: int = 3000
    ws_gateway_port: int = 3001

    # Environment
    environment: str = "development"
    debug: bool = True

    # Login rate limiting (slowapi, per client IP)
    rate_limit_enabled: bool = True
    login_rate_limit: int = 10  # Max login attempts per minute

    # Chat
    chat_history_limit: int = 100  # Messages sent privately on join-room
    chat_max_message_length: int = 2000
    # What happens to voice presence when its owner switches text room:
    # "keep" leaves it bound to the room it was joined in, "leave" drops it
    voice_room_switch_policy: Literal["keep", "leave"] = "keep"

    # WebSocket
    # Idle limit for inbound frames; clients in voice must still send ping frames
    ws_heartbeat_timeout: int = 60
    ws_max_message_size: int = 64 * 1024  # 64 KB
    ws_max_total_connections: int = 1000
    ws_message_rate_limit: int = 30  # Max frames per window per connection
    ws_message_rate_window: int = 1  # Window in seconds

    # Persistence calls made from the gateway event loop
    db_lookup_timeout: float = 5.0

    @property
    def origin_list(self) -> list[str]:
        if self.allowed_origins:
            return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return list(LOCAL_ORIGINS)

    def validate_production_settings(self) -> list[str]:
        """
        Validate that settings are sane for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

            if self.database_url.startswith("sqlite") and ":memory:" in self.database_url:
                errors.append("DATABASE_URL must not be an in-memory database in production")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

# Direct access to commonly used settings
DATABASE_URL = settings.database_url
