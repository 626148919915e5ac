# src/onion_overlay/main.py
"""Application factories for the three node roles."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI

from onion_overlay.api import directory_router, relay_router, user_router
from onion_overlay.core.errors import DirectoryError
from onion_overlay.core.settings import Settings, settings as default_settings
from onion_overlay.services.crypto import KeyPair
from onion_overlay.services.directory import NodeRegistry
from onion_overlay.services.relay_service import RelayContext
from onion_overlay.services.transport import NodeTransport
from onion_overlay.services.user_service import UserContext

logger = logging.getLogger(__name__)


def create_directory_app(config: Settings | None = None) -> FastAPI:
    """Build the directory service with an empty registry."""
    config = config or default_settings
    app = FastAPI(
        title=f"{config.app_name} Directory",
        description="Registry of relay identities and public keys",
        version=config.app_version,
    )
    app.state.context = NodeRegistry(address_span=config.address_span)
    app.include_router(directory_router)
    return app


def create_relay_app(
    node_id: int,
    config: Settings | None = None,
    *,
    key_pair: KeyPair | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build a relay service; a fresh key pair is generated unless one is given."""
    config = config or default_settings
    context = RelayContext(
        node_id,
        config,
        key_pair=key_pair,
        transport=NodeTransport(config, transport=transport),
    )
    app = FastAPI(
        title=f"{config.app_name} Relay {node_id}",
        description="Onion relay: strips one layer per message",
        version=config.app_version,
    )
    app.state.context = context
    app.include_router(relay_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        if not config.register_on_startup:
            return
        try:
            await context.register()
        except DirectoryError as exc:
            logger.error("Relay %d could not register: %s", node_id, exc)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await context.transport.close()

    return app


def create_user_app(
    user_id: int,
    config: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build a user service that can both send and receive."""
    config = config or default_settings
    context = UserContext(user_id, config, transport=NodeTransport(config, transport=transport))
    app = FastAPI(
        title=f"{config.app_name} User {user_id}",
        description="Overlay endpoint that sends and receives messages",
        version=config.app_version,
    )
    app.state.context = context
    app.include_router(user_router)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await context.transport.close()

    return app
