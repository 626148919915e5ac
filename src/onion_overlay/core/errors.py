"""Exception taxonomy for onion routing failures.

Every error is handled at the node where it occurs. The HTTP layer maps
``status_code`` onto the node's response; nothing is retried and nothing is
signalled back along the circuit.
"""

from __future__ import annotations


class OnionRoutingError(RuntimeError):
    """Base exception raised for onion routing failures."""

    status_code: int = 500


class InsufficientNodesError(OnionRoutingError):
    """Raised when the directory knows too few relays to build a circuit."""

    status_code = 503


class MissingKeyMaterialError(OnionRoutingError):
    """Raised when a public key for a circuit member or a relay's own private key is absent."""

    status_code = 500


class MalformedEnvelopeError(OnionRoutingError):
    """Raised when an envelope is shorter than the fixed key block."""

    status_code = 400


class DecryptionError(OnionRoutingError):
    """Raised when a layer cannot be decrypted or decoded."""

    status_code = 400


class InvalidDestinationFormatError(OnionRoutingError):
    """Raised when a destination field is not a valid 10-digit address."""

    status_code = 400


class ForwardingTransportError(OnionRoutingError):
    """Raised when the network call to the next hop fails."""

    status_code = 502


class DirectoryError(OnionRoutingError):
    """Raised when the directory cannot be reached or rejects a request."""

    status_code = 502
