"""
Authentication routers - /api/auth/*
Handles registration and login.
"""

from .routes import router

__all__ = ["router"]
