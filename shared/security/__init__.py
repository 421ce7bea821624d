"""
Security module: Password hashing and REST rate limiting.
"""

from shared.security.password import hash_password, verify_password
from shared.security.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    LOGIN_LIMIT,
)

__all__ = [
    # password
    "hash_password",
    "verify_password",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
    "LOGIN_LIMIT",
]
