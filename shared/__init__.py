"""
Shared module for common utilities across REST API and WS Gateway.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging and audit helpers
  - constants.py: User status, room types, limits, default rooms

- shared.infrastructure: Database and log correlation
  - db.py: SQLAlchemy engine and sessions, safe_commit()
  - correlation.py: Request / connection correlation IDs

- shared.security: Password hashing, REST rate limiting

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - schemas.py: Shared Pydantic schemas
  - avatars.py: Generated avatar URLs

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import RoomType, UserStatus
    from shared.utils.exceptions import RoomNotFoundError, DuplicateEntityError
"""
