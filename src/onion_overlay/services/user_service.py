"""User node: send through a fresh circuit and receive final deliveries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from onion_overlay.core.errors import ForwardingTransportError
from onion_overlay.core.settings import Settings, settings as default_settings
from onion_overlay.services.addressing import AddressBook
from onion_overlay.services.circuit import Circuit, build_circuit
from onion_overlay.services.onion import OnionEncoder
from onion_overlay.services.recipient import DeliveryEncoding, decode_delivery
from onion_overlay.services.transport import DirectoryClient, NodeTransport

logger = logging.getLogger(__name__)


@dataclass
class UserRuntimeState:
    """Last sent/received message and last circuit, for the debug endpoints."""

    last_received_message: bytes | None = None
    last_sent_message: str | None = None
    last_circuit: list[int] = field(default_factory=list)


class UserContext:
    """Everything one user node owns."""

    def __init__(
        self,
        user_id: int,
        config: Settings | None = None,
        *,
        transport: NodeTransport | None = None,
    ) -> None:
        self.config = config or default_settings
        self.addresses = AddressBook.from_settings(self.config)
        self.user_id = user_id
        self.address = self.addresses.recipient_address(user_id)
        self.transport = transport or NodeTransport(self.config)
        self.encoder = OnionEncoder(self.addresses)
        self.state = UserRuntimeState()

    def receive(self, message: str, encoding: DeliveryEncoding = "base64") -> bytes:
        """Store a delivered payload as the last received message."""
        plaintext = decode_delivery(message, encoding)
        self.state.last_received_message = plaintext
        logger.info("User %d received a %d-byte message", self.user_id, len(plaintext))
        return plaintext

    async def send_message(self, message: str, destination_user_id: int) -> Circuit:
        """Wrap ``message`` for a user and hand it to the first relay.

        Returns once the first relay has accepted the envelope; later hops
        are never reported back.

        Raises:
            DirectoryError: Directory unreachable.
            InsufficientNodesError: Fewer than three relays registered.
            ValueError: ``destination_user_id`` outside the address span.
            ForwardingTransportError: The first relay is unreachable or refused.
        """
        recipient_address = self.addresses.recipient_address(destination_user_id)

        nodes = await DirectoryClient(self.transport).fetch_nodes()
        public_keys = {node.node_id: node.pub_key for node in nodes}
        circuit = build_circuit(public_keys)
        self.state.last_circuit = list(circuit)

        envelope = self.encoder.encode(
            message.encode("utf-8"), recipient_address, circuit, public_keys
        )

        entry_address = self.addresses.relay_address(circuit.entry)
        response = await self.transport.forward(entry_address, envelope)
        if response.is_error:
            raise ForwardingTransportError(
                f"Entry relay {circuit.entry} refused the message ({response.status_code})"
            )

        self.state.last_sent_message = message
        logger.info("User %d sent a message via %r", self.user_id, circuit)
        return circuit
