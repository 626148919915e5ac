"""API endpoint modules, one router per node role."""

from .directory import router as directory_router
from .relay import router as relay_router
from .user import router as user_router

__all__ = [
    "directory_router",
    "relay_router",
    "user_router",
]
