"""HTTP transport between overlay nodes.

Every hop is a plain JSON POST to ``http://host:address/message``. A call
succeeds once the next node has accepted the request; nothing beyond that
acknowledgment ever travels back along the circuit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from onion_overlay.core.errors import DirectoryError, ForwardingTransportError
from onion_overlay.core.settings import Settings, settings as default_settings
from onion_overlay.schemas.directory import NodeRecord
from onion_overlay.services.addressing import AddressBook

logger = logging.getLogger(__name__)


class NodeTransport:
    """Async HTTP client wrapper shared by all requests of one node."""

    def __init__(
        self,
        config: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or default_settings
        self.addresses = AddressBook.from_settings(self.config)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.http_timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, address: int, payload: dict[str, Any]) -> httpx.Response:
        client = await self.ensure_client()
        url = self.addresses.url_for(address)
        try:
            return await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Call to %s failed: %s", url, exc)
            raise ForwardingTransportError(f"Could not reach {url}: {exc}") from exc

    async def forward(self, address: int, envelope: str) -> httpx.Response:
        """Hand an envelope to the relay at ``address``.

        Only transport failures raise; the next hop's own status is returned
        to the caller as-is.
        """
        return await self._post(address, {"message": envelope})

    async def deliver(self, address: int, payload: str) -> httpx.Response:
        """Hand the final base64 payload to the user at ``address``."""
        return await self._post(address, {"message": payload, "encoding": "base64"})


class DirectoryClient:
    """Client for the directory's registration and listing endpoints."""

    def __init__(self, transport: NodeTransport) -> None:
        self.transport = transport

    @property
    def base_url(self) -> str:
        return self.transport.config.directory_url

    async def register(self, node_id: int, public_key_b64: str) -> None:
        """Publish a relay's public key.

        Raises:
            DirectoryError: If the directory is unreachable or rejects the node.
        """
        client = await self.transport.ensure_client()
        try:
            response = await client.post(
                f"{self.base_url}/registerNode",
                json={"nodeId": node_id, "pubKey": public_key_b64},
            )
        except httpx.HTTPError as exc:
            raise DirectoryError(f"Directory unreachable: {exc}") from exc

        if response.status_code != httpx.codes.CREATED:
            raise DirectoryError(
                f"Directory rejected node {node_id} ({response.status_code}): {response.text}"
            )

    async def fetch_nodes(self) -> list[NodeRecord]:
        """Return every relay the directory knows about."""
        client = await self.transport.ensure_client()
        try:
            response = await client.get(f"{self.base_url}/getNodeRegistry")
        except httpx.HTTPError as exc:
            raise DirectoryError(f"Directory unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise DirectoryError(f"Directory responded with {response.status_code}")

        payload = response.json()
        return [NodeRecord.model_validate(node) for node in payload.get("nodes", [])]
