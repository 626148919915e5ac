"""HTTP API for directory, relay and user nodes."""

from .endpoints import directory_router, relay_router, user_router

__all__ = [
    "directory_router",
    "relay_router",
    "user_router",
]
