# tests/conftest.py
from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from onion_overlay.core.settings import Settings
from onion_overlay.services.addressing import AddressBook
from onion_overlay.services.crypto import CryptoService, KeyPair

RELAY_IDS = (1, 2, 3, 4, 5)


class OverlayRouter(httpx.AsyncBaseTransport):
    """Dispatch outgoing httpx calls to in-process ASGI apps by port."""

    def __init__(self) -> None:
        self._apps: dict[int, httpx.ASGITransport] = {}
        self.calls: list[tuple[int, str]] = []

    def mount(self, port: int, app: FastAPI) -> None:
        self._apps[port] = httpx.ASGITransport(app=app)

    def unmount(self, port: int) -> None:
        self._apps.pop(port, None)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        port = request.url.port
        self.calls.append((port, request.url.path))
        target = self._apps.get(port)
        if target is None:
            raise httpx.ConnectError(f"Nothing listening on port {port}", request=request)
        return await target.handle_async_request(request)


@pytest.fixture(scope="session")
def overlay_settings() -> Settings:
    """Default layout with startup registration disabled."""
    return Settings(register_on_startup=False)


@pytest.fixture(scope="session")
def addresses(overlay_settings: Settings) -> AddressBook:
    return AddressBook.from_settings(overlay_settings)


@pytest.fixture(scope="session")
def key_pairs() -> dict[int, KeyPair]:
    """RSA key pairs for relays 1-5; generated once because RSA keygen is slow."""
    return {node_id: CryptoService.generate_key_pair() for node_id in RELAY_IDS}


@pytest.fixture(scope="session")
def public_keys(key_pairs: dict[int, KeyPair]) -> dict[int, str]:
    return {node_id: pair.public_key_b64 for node_id, pair in key_pairs.items()}


@pytest.fixture()
def router() -> OverlayRouter:
    return OverlayRouter()


def make_client(app: FastAPI) -> TestClient:
    return TestClient(app, base_url="http://test")


@pytest.fixture()
def directory_client(overlay_settings: Settings) -> Iterator[TestClient]:
    from onion_overlay.main import create_directory_app

    with make_client(create_directory_app(overlay_settings)) as client:
        yield client
