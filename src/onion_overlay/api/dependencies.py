"""Dependency helpers resolving the node context owned by each app."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from onion_overlay.core.errors import OnionRoutingError
from onion_overlay.services.directory import NodeRegistry
from onion_overlay.services.relay_service import RelayContext
from onion_overlay.services.user_service import UserContext


def _context(request: Request, expected: type) -> object:
    context = getattr(request.app.state, "context", None)
    if not isinstance(context, expected):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Node is not configured as a {expected.__name__}",
        )
    return context


def get_registry(request: Request) -> NodeRegistry:
    """Return the directory's registry."""
    return _context(request, NodeRegistry)  # type: ignore[return-value]


def get_relay_context(request: Request) -> RelayContext:
    """Return the relay context of the app serving this request."""
    return _context(request, RelayContext)  # type: ignore[return-value]


def get_user_context(request: Request) -> UserContext:
    """Return the user context of the app serving this request."""
    return _context(request, UserContext)  # type: ignore[return-value]


RegistryDep = Annotated[NodeRegistry, Depends(get_registry)]
RelayContextDep = Annotated[RelayContext, Depends(get_relay_context)]
UserContextDep = Annotated[UserContext, Depends(get_user_context)]


def to_http_error(exc: OnionRoutingError) -> HTTPException:
    """Translate an overlay error into the node's HTTP response."""
    return HTTPException(status_code=exc.status_code, detail=str(exc))
