"""
Chat routers - /api/rooms/* and /api/users/*
"""

from fastapi import APIRouter

from .rooms import router as rooms_router
from .users import router as users_router

router = APIRouter()
router.include_router(rooms_router)
router.include_router(users_router)

__all__ = ["router"]
