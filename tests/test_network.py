"""End-to-end tests running a whole overlay in-process.

Every node is a real FastAPI app; httpx calls between them are routed by
port through ``OverlayRouter`` instead of sockets.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import pytest
from fastapi import FastAPI

from onion_overlay.core.settings import Settings
from onion_overlay.main import create_directory_app, create_relay_app, create_user_app
from onion_overlay.services.circuit import Circuit
from onion_overlay.services.crypto import KEY_BLOCK_LENGTH
from tests.conftest import OverlayRouter


@dataclass
class Overlay:
    settings: Settings
    router: OverlayRouter
    directory: FastAPI
    relays: dict[int, FastAPI]
    users: dict[int, FastAPI]

    def user_client(self, user_id: int) -> httpx.AsyncClient:
        port = self.settings.recipient_base_port + user_id
        return httpx.AsyncClient(transport=self.router, base_url=f"http://localhost:{port}")

    def relay_client(self, node_id: int) -> httpx.AsyncClient:
        port = self.settings.relay_base_port + node_id
        return httpx.AsyncClient(transport=self.router, base_url=f"http://localhost:{port}")


@pytest.fixture()
async def overlay(overlay_settings, key_pairs, router):
    config = overlay_settings
    directory = create_directory_app(config)
    router.mount(config.directory_port, directory)

    relays = {}
    for node_id in (1, 2, 3, 4):
        app = create_relay_app(node_id, config, key_pair=key_pairs[node_id], transport=router)
        router.mount(config.relay_base_port + node_id, app)
        await app.state.context.register()
        relays[node_id] = app

    users = {}
    for user_id in (0, 7):
        app = create_user_app(user_id, config, transport=router)
        router.mount(config.recipient_base_port + user_id, app)
        users[user_id] = app

    yield Overlay(config, router, directory, relays, users)

    for app in (*relays.values(), *users.values()):
        await app.state.context.transport.close()


@pytest.mark.asyncio
async def test_message_reaches_recipient(overlay: Overlay) -> None:
    async with overlay.user_client(0) as client:
        r = await client.post("/sendMessage", json={"message": "hello", "destinationUserId": 7})
        assert r.status_code == 200
        circuit = (await client.get("/getLastCircuit")).json()["result"]

    async with overlay.user_client(7) as client:
        assert (await client.get("/getLastReceivedMessage")).json() == {"result": "hello"}

    assert len(set(circuit)) == 3
    exit_relay = overlay.relays[circuit[-1]].state.context
    assert exit_relay.state.last_message_destination == 3007


@pytest.mark.asyncio
async def test_scenario_follows_fixed_circuit(overlay: Overlay, mocker) -> None:
    mocker.patch(
        "onion_overlay.services.user_service.build_circuit",
        return_value=Circuit([3, 1, 4]),
    )

    async with overlay.user_client(0) as client:
        r = await client.post("/sendMessage", json={"message": "hello", "destinationUserId": 7})
        assert r.status_code == 200
        assert (await client.get("/getLastCircuit")).json() == {"result": [3, 1, 4]}
        assert (await client.get("/getLastSentMessage")).json() == {"result": "hello"}

    expected = {3: 4001, 1: 4004, 4: 3007}
    for node_id, destination in expected.items():
        async with overlay.relay_client(node_id) as client:
            got = (await client.get("/getLastMessageDestination")).json()["result"]
            encrypted = (await client.get("/getLastReceivedEncryptedMessage")).json()["result"]
            decrypted = (await client.get("/getLastReceivedDecryptedMessage")).json()["result"]
        assert got == destination
        assert len(encrypted) > KEY_BLOCK_LENGTH
        assert decrypted.startswith(f"{destination:010d}")

    # Relay 2 was not on the circuit
    assert overlay.relays[2].state.context.state.last_received_encrypted_message is None

    async with overlay.user_client(7) as client:
        assert (await client.get("/getLastReceivedMessage")).json() == {"result": "hello"}


@pytest.mark.asyncio
async def test_empty_message_is_delivered(overlay: Overlay) -> None:
    async with overlay.user_client(0) as client:
        r = await client.post("/sendMessage", json={"message": "", "destinationUserId": 7})
        assert r.status_code == 200

    async with overlay.user_client(7) as client:
        assert (await client.get("/getLastReceivedMessage")).json() == {"result": ""}


@pytest.mark.asyncio
async def test_users_can_message_each_other(overlay: Overlay) -> None:
    async with overlay.user_client(7) as client:
        r = await client.post("/sendMessage", json={"message": "pong", "destinationUserId": 0})
        assert r.status_code == 200

    async with overlay.user_client(0) as client:
        assert (await client.get("/getLastReceivedMessage")).json() == {"result": "pong"}


@pytest.mark.asyncio
async def test_failure_after_entry_is_silent_to_sender(overlay: Overlay, mocker) -> None:
    mocker.patch(
        "onion_overlay.services.user_service.build_circuit",
        return_value=Circuit([1, 2, 3]),
    )
    # Relay 3 disappears; relay 2's forward fails but relay 1 still answers 200
    overlay.router.unmount(overlay.settings.relay_base_port + 3)

    async with overlay.user_client(0) as client:
        r = await client.post("/sendMessage", json={"message": "lost", "destinationUserId": 7})
        assert r.status_code == 200

    assert overlay.relays[2].state.context.state.last_message_destination == 4003
    async with overlay.user_client(7) as client:
        assert (await client.get("/getLastReceivedMessage")).json() == {"result": None}


@pytest.mark.asyncio
async def test_entry_failure_is_reported(overlay: Overlay, mocker) -> None:
    mocker.patch(
        "onion_overlay.services.user_service.build_circuit",
        return_value=Circuit([1, 2, 3]),
    )
    overlay.router.unmount(overlay.settings.relay_base_port + 1)

    async with overlay.user_client(0) as client:
        r = await client.post("/sendMessage", json={"message": "lost", "destinationUserId": 7})
        assert r.status_code == 502
        assert (await client.get("/getLastSentMessage")).json() == {"result": None}
