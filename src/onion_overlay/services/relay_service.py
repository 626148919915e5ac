"""Relay node: peel one layer, then forward or deliver."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from onion_overlay.core.settings import Settings, settings as default_settings
from onion_overlay.services.addressing import AddressBook
from onion_overlay.services.crypto import CryptoService, KeyPair
from onion_overlay.services.onion import PeelResult, RelayPeeler
from onion_overlay.services.transport import DirectoryClient, NodeTransport

logger = logging.getLogger(__name__)


@dataclass
class RelayRuntimeState:
    """Last observed message, for the debug endpoints only.

    Concurrent requests overwrite each other; the protocol never reads this.
    """

    last_received_encrypted_message: str | None = None
    last_received_decrypted_message: str | None = None
    last_message_destination: int | None = None


class RelayContext:
    """Everything one relay owns: its id, key pair, transport and debug state."""

    def __init__(
        self,
        node_id: int,
        config: Settings | None = None,
        *,
        key_pair: KeyPair | None = None,
        transport: NodeTransport | None = None,
    ) -> None:
        self.config = config or default_settings
        self.addresses = AddressBook.from_settings(self.config)
        self.node_id = node_id
        self.address = self.addresses.relay_address(node_id)
        self.key_pair = key_pair if key_pair is not None else CryptoService.generate_key_pair()
        self.transport = transport or NodeTransport(self.config)
        self.peeler = RelayPeeler(self.key_pair, self.addresses)
        self.state = RelayRuntimeState()

    @property
    def public_key_b64(self) -> str:
        return self.key_pair.public_key_b64

    async def register(self) -> None:
        """Publish this relay's public key to the directory."""
        await DirectoryClient(self.transport).register(self.node_id, self.public_key_b64)
        logger.info("Relay %d registered with the directory", self.node_id)

    async def handle_envelope(self, envelope: str) -> PeelResult:
        """Peel this relay's layer and pass the remainder on.

        Waits for the next hop to accept before returning. Any peeling failure
        propagates before anything is sent onward.

        Raises:
            OnionRoutingError: Any peeling failure, or ForwardingTransportError
                if the next hop cannot be reached.
        """
        self.state.last_received_encrypted_message = envelope

        result = self.peeler.peel(envelope)

        self.state.last_received_decrypted_message = result.layer_plaintext
        self.state.last_message_destination = result.destination

        if result.is_final:
            user_id = self.addresses.node_id_of(result.destination)
            logger.info("Relay %d delivering to user %d", self.node_id, user_id)
            response = await self.transport.deliver(result.destination, result.remainder)
        else:
            logger.info("Relay %d forwarding to %d", self.node_id, result.destination)
            response = await self.transport.forward(result.destination, result.remainder)

        if response.is_error:
            logger.warning(
                "Relay %d: next hop %d answered %d",
                self.node_id,
                result.destination,
                response.status_code,
            )
        return result
