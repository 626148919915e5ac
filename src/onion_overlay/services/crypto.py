"""Cryptographic primitives for onion layers.

Asymmetric layer: RSA-2048 with OAEP/SHA-256. Keys travel as base64 DER
SubjectPublicKeyInfo. One OAEP ciphertext is 256 bytes, which is 344
characters of base64; that constant is the key block length of every
envelope.

Symmetric layer: AES-256-GCM. Ciphertexts travel as base64 of
``nonce || ciphertext || tag``. The GCM tag makes a wrong key or a corrupted
body fail loudly instead of yielding garbage.
"""

from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from onion_overlay.core.errors import DecryptionError, MissingKeyMaterialError

RSA_KEY_SIZE_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537
RSA_CIPHERTEXT_BYTES = RSA_KEY_SIZE_BITS // 8
KEY_BLOCK_LENGTH = 4 * ((RSA_CIPHERTEXT_BYTES + 2) // 3)  # 344

SYMMETRIC_KEY_BYTES = 32
GCM_NONCE_BYTES = 12

_OAEP = padding.OAEP(
    mgf=padding.MGF1(algorithm=hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)


def b64encode_text(data: bytes | str) -> str:
    """Apply the overlay's reversible text encoding (standard base64)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def b64decode_text(data: str) -> bytes:
    """Reverse :func:`b64encode_text`, rejecting anything that is not strict base64."""
    try:
        return base64.b64decode(data.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as err:
        raise DecryptionError(f"Invalid base64 encoding: {err}") from err


@dataclass(frozen=True)
class KeyPair:
    """A relay's asymmetric key pair; the private half never leaves the process."""

    public_key: rsa.RSAPublicKey
    private_key: rsa.RSAPrivateKey | None

    @property
    def public_key_b64(self) -> str:
        """The public key as published to the directory."""
        return CryptoService.export_public_key(self.public_key)


class CryptoService:
    """Service handling the asymmetric and symmetric layer operations."""

    @staticmethod
    def generate_key_pair() -> KeyPair:
        """Generate a fresh RSA key pair for a relay."""
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=RSA_KEY_SIZE_BITS,
        )
        return KeyPair(public_key=private_key.public_key(), private_key=private_key)

    @staticmethod
    def export_public_key(public_key: rsa.RSAPublicKey) -> str:
        """Export a public key as base64 DER SubjectPublicKeyInfo."""
        der = public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return b64encode_text(der)

    @staticmethod
    def import_public_key(public_key_b64: str) -> rsa.RSAPublicKey:
        """Import a base64 DER public key.

        Raises:
            MissingKeyMaterialError: If the key cannot be decoded, is not RSA,
                or does not have the protocol key size.
        """
        try:
            der = base64.b64decode(public_key_b64.encode("ascii"), validate=True)
            key = serialization.load_der_public_key(der)
        except (binascii.Error, UnicodeEncodeError, ValueError) as err:
            raise MissingKeyMaterialError(f"Unusable public key: {err}") from err
        if not isinstance(key, rsa.RSAPublicKey):
            raise MissingKeyMaterialError("Public key is not an RSA key")
        if key.key_size != RSA_KEY_SIZE_BITS:
            raise MissingKeyMaterialError(
                f"Public key must be {RSA_KEY_SIZE_BITS} bits, got {key.key_size}"
            )
        return key

    @staticmethod
    def rsa_encrypt(data: str, public_key: rsa.RSAPublicKey) -> str:
        """Encrypt a short text with RSA-OAEP; the result is always KEY_BLOCK_LENGTH chars."""
        ciphertext = public_key.encrypt(data.encode("ascii"), _OAEP)
        return b64encode_text(ciphertext)

    @staticmethod
    def rsa_decrypt(data: str, private_key: rsa.RSAPrivateKey) -> str:
        """Decrypt a key block produced by :meth:`rsa_encrypt`."""
        ciphertext = b64decode_text(data)
        try:
            plaintext = private_key.decrypt(ciphertext, _OAEP)
            return plaintext.decode("ascii")
        except (ValueError, UnicodeDecodeError) as err:
            raise DecryptionError("Key block could not be decrypted") from err

    @staticmethod
    def create_symmetric_key() -> bytes:
        """Generate a fresh AES-256 key."""
        return AESGCM.generate_key(bit_length=SYMMETRIC_KEY_BYTES * 8)

    @staticmethod
    def export_symmetric_key(key: bytes) -> str:
        return b64encode_text(key)

    @staticmethod
    def import_symmetric_key(key_b64: str) -> bytes:
        key = b64decode_text(key_b64)
        if len(key) != SYMMETRIC_KEY_BYTES:
            raise DecryptionError("Symmetric keys must be 32 bytes")
        return key

    @staticmethod
    def sym_encrypt(key: bytes, data: str) -> str:
        """Encrypt text with AES-GCM under a random nonce."""
        nonce = os.urandom(GCM_NONCE_BYTES)
        ciphertext = AESGCM(key).encrypt(nonce, data.encode("utf-8"), None)
        return b64encode_text(nonce + ciphertext)

    @staticmethod
    def sym_decrypt(key: bytes, data: str) -> str:
        """Decrypt and authenticate a body produced by :meth:`sym_encrypt`."""
        raw = b64decode_text(data)
        if len(raw) < GCM_NONCE_BYTES:
            raise DecryptionError("Symmetric body is truncated")
        nonce, ciphertext = raw[:GCM_NONCE_BYTES], raw[GCM_NONCE_BYTES:]
        try:
            plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, UnicodeDecodeError) as err:
            raise DecryptionError("Symmetric body failed authentication") from err
