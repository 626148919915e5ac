"""Onion envelope construction and per-hop peeling.

Envelope layout at every hop::

    [key block: KEY_BLOCK_LENGTH chars][symmetric body: rest]

The key block is the RSA-encrypted, base64-encoded symmetric key for this
hop. The body decrypts to the base64 encoding of the layer plaintext::

    [destination: 10 digits][inner envelope | base64 of the final message]

The innermost remainder is always exactly one base64 layer deep, so the last
relay hands it to the recipient marked as ``base64`` and no format sniffing
is ever needed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import rsa

from onion_overlay.core.errors import (
    DecryptionError,
    InvalidDestinationFormatError,
    MalformedEnvelopeError,
    MissingKeyMaterialError,
)
from onion_overlay.services.addressing import (
    DESTINATION_FIELD_LENGTH,
    AddressBook,
    format_destination,
    parse_destination,
)
from onion_overlay.services.circuit import Circuit
from onion_overlay.services.crypto import (
    KEY_BLOCK_LENGTH,
    CryptoService,
    KeyPair,
    b64decode_text,
    b64encode_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeelResult:
    """Outcome of removing one layer."""

    destination: int
    remainder: str
    layer_plaintext: str
    is_final: bool


def _decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionError("Decrypted layer is not valid text") from err


def split_envelope(envelope: str) -> tuple[str, str]:
    """Split an envelope into its key block and symmetric body."""
    if len(envelope) < KEY_BLOCK_LENGTH:
        raise MalformedEnvelopeError(
            f"Envelope is {len(envelope)} chars, shorter than the {KEY_BLOCK_LENGTH}-char key block"
        )
    return envelope[:KEY_BLOCK_LENGTH], envelope[KEY_BLOCK_LENGTH:]


class OnionEncoder:
    """Wraps a message in one layer per circuit hop, innermost first."""

    def __init__(self, addresses: AddressBook, crypto: CryptoService | None = None) -> None:
        self.addresses = addresses
        self.crypto = crypto or CryptoService()

    def _public_key_for(
        self, node_id: int, public_keys: Mapping[int, str | rsa.RSAPublicKey]
    ) -> rsa.RSAPublicKey:
        key = public_keys.get(node_id)
        if key is None:
            raise MissingKeyMaterialError(f"No public key known for relay {node_id}")
        if isinstance(key, str):
            return self.crypto.import_public_key(key)
        return key

    def encode(
        self,
        plaintext: bytes,
        recipient_address: int,
        circuit: Circuit,
        public_keys: Mapping[int, str | rsa.RSAPublicKey],
    ) -> str:
        """Build the envelope to send to ``circuit.entry``.

        Args:
            plaintext: Raw message bytes; may be empty.
            recipient_address: Address of the final recipient (recipient range).
            circuit: Relay path, entry hop first.
            public_keys: Relay id to public key (base64 DER or loaded key).

        Returns:
            The outermost envelope.

        Raises:
            MissingKeyMaterialError: If a circuit member has no usable public key.
            InvalidDestinationFormatError: If ``recipient_address`` is not a recipient.
        """
        if not self.addresses.is_recipient(recipient_address):
            raise InvalidDestinationFormatError(
                f"Address {recipient_address} is not in the recipient range"
            )

        # Resolve every key up front so a missing one leaves no partial work behind
        hop_keys = [self._public_key_for(node_id, public_keys) for node_id in circuit]

        payload = b64encode_text(plaintext)
        last = len(circuit) - 1
        for index in range(last, -1, -1):
            if index == last:
                next_hop = recipient_address
            else:
                next_hop = self.addresses.relay_address(circuit[index + 1])

            layer_plaintext = format_destination(next_hop) + payload

            sym_key = self.crypto.create_symmetric_key()
            encrypted_body = self.crypto.sym_encrypt(sym_key, b64encode_text(layer_plaintext))
            encrypted_key_block = self.crypto.rsa_encrypt(
                b64encode_text(self.crypto.export_symmetric_key(sym_key)),
                hop_keys[index],
            )

            payload = encrypted_key_block + encrypted_body

        logger.debug("Encoded %d-byte message through circuit %r", len(plaintext), circuit)
        return payload


class RelayPeeler:
    """Removes exactly one layer using the relay's own key pair."""

    def __init__(
        self,
        key_pair: KeyPair | None,
        addresses: AddressBook,
        crypto: CryptoService | None = None,
    ) -> None:
        self.key_pair = key_pair
        self.addresses = addresses
        self.crypto = crypto or CryptoService()

    def peel(self, envelope: str) -> PeelResult:
        """Decrypt this relay's layer and decide where the remainder goes.

        Raises:
            MalformedEnvelopeError: Envelope, or the remainder bound for another
                relay, shorter than the key block.
            MissingKeyMaterialError: The relay holds no private key.
            DecryptionError: Wrong key, corrupted block or body.
            InvalidDestinationFormatError: Destination field is not a usable address.
        """
        encrypted_key_block, encrypted_body = split_envelope(envelope)

        if self.key_pair is None or self.key_pair.private_key is None:
            raise MissingKeyMaterialError("Relay has no private key")

        key_text = self.crypto.rsa_decrypt(encrypted_key_block, self.key_pair.private_key)
        sym_key = self.crypto.import_symmetric_key(_decode_text(b64decode_text(key_text)))

        layer_b64 = self.crypto.sym_decrypt(sym_key, encrypted_body)
        layer_plaintext = _decode_text(b64decode_text(layer_b64))

        destination = parse_destination(layer_plaintext[:DESTINATION_FIELD_LENGTH])
        if self.addresses.role_of(destination) is None:
            raise InvalidDestinationFormatError(
                f"Destination {destination} is not in any node range"
            )
        remainder = layer_plaintext[DESTINATION_FIELD_LENGTH:].strip()
        is_final = self.addresses.is_recipient(destination)
        if not is_final:
            # Anything handed to another relay must itself be an envelope
            split_envelope(remainder)

        return PeelResult(
            destination=destination,
            remainder=remainder,
            layer_plaintext=layer_plaintext,
            is_final=is_final,
        )
