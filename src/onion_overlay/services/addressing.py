"""Address arithmetic and the fixed-width destination field.

Nodes are addressed as ``role base + node id``. The same numbers are written
into layer plaintexts as 10-digit, zero-padded decimal strings, so any hop can
dispatch with arithmetic alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from onion_overlay.core.errors import InvalidDestinationFormatError
from onion_overlay.core.settings import Settings, settings as default_settings

DESTINATION_FIELD_LENGTH = 10


class NodeRole(Enum):
    """Address range an address belongs to."""

    RELAY = "relay"
    RECIPIENT = "recipient"


@dataclass(frozen=True)
class AddressBook:
    """Maps node ids to addresses and back for one overlay layout."""

    relay_base: int
    recipient_base: int
    span: int
    host: str = "localhost"

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> AddressBook:
        config = config or default_settings
        return cls(
            relay_base=config.relay_base_port,
            recipient_base=config.recipient_base_port,
            span=config.address_span,
            host=config.host,
        )

    def _check_id(self, node_id: int) -> None:
        if not 0 <= node_id < self.span:
            raise ValueError(f"Node id {node_id} is outside [0, {self.span})")

    def relay_address(self, node_id: int) -> int:
        self._check_id(node_id)
        return self.relay_base + node_id

    def recipient_address(self, user_id: int) -> int:
        self._check_id(user_id)
        return self.recipient_base + user_id

    def role_of(self, address: int) -> NodeRole | None:
        """Return the role whose range contains ``address``, if any."""
        if self.recipient_base <= address < self.recipient_base + self.span:
            return NodeRole.RECIPIENT
        if self.relay_base <= address < self.relay_base + self.span:
            return NodeRole.RELAY
        return None

    def is_recipient(self, address: int) -> bool:
        return self.role_of(address) is NodeRole.RECIPIENT

    def node_id_of(self, address: int) -> int:
        """Recover the node id from an address in either range."""
        role = self.role_of(address)
        if role is NodeRole.RECIPIENT:
            return address - self.recipient_base
        if role is NodeRole.RELAY:
            return address - self.relay_base
        raise InvalidDestinationFormatError(f"Address {address} is not in any node range")

    def url_for(self, address: int, path: str = "/message") -> str:
        return f"http://{self.host}:{address}{path}"


def format_destination(address: int) -> str:
    """Render an address as the 10-character destination field."""
    if address < 0 or address >= 10**DESTINATION_FIELD_LENGTH:
        raise InvalidDestinationFormatError(
            f"Address {address} does not fit in {DESTINATION_FIELD_LENGTH} digits"
        )
    return str(address).zfill(DESTINATION_FIELD_LENGTH)


def parse_destination(field: str) -> int:
    """Parse a destination field; it must be exactly 10 ASCII decimal digits."""
    if len(field) != DESTINATION_FIELD_LENGTH or not (field.isascii() and field.isdigit()):
        raise InvalidDestinationFormatError(
            f"Destination field {field!r} is not {DESTINATION_FIELD_LENGTH} decimal digits"
        )
    return int(field)
