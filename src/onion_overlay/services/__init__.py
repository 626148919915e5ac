"""Protocol and node services for the onion overlay."""

from .circuit import Circuit, build_circuit
from .crypto import KEY_BLOCK_LENGTH, CryptoService, KeyPair
from .onion import OnionEncoder, PeelResult, RelayPeeler
from .recipient import decode_delivery

__all__ = [
    "Circuit",
    "build_circuit",
    "KEY_BLOCK_LENGTH",
    "CryptoService",
    "KeyPair",
    "OnionEncoder",
    "PeelResult",
    "RelayPeeler",
    "decode_delivery",
]
