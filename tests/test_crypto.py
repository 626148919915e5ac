"""Tests for the layer cryptography helpers."""

import pytest

from onion_overlay.core.errors import DecryptionError, MissingKeyMaterialError
from onion_overlay.services.crypto import (
    KEY_BLOCK_LENGTH,
    CryptoService,
    b64decode_text,
    b64encode_text,
)


def test_key_block_length_matches_rsa_2048() -> None:
    assert KEY_BLOCK_LENGTH == 344


def test_public_key_export_import(key_pairs) -> None:
    exported = key_pairs[1].public_key_b64
    imported = CryptoService.import_public_key(exported)
    assert imported.public_numbers() == key_pairs[1].public_key.public_numbers()


@pytest.mark.parametrize("bad_key", ["", "not base64!", b64encode_text(b"short garbage")])
def test_import_public_key_rejects_garbage(bad_key: str) -> None:
    with pytest.raises(MissingKeyMaterialError):
        CryptoService.import_public_key(bad_key)


def test_rsa_ciphertext_has_fixed_length(key_pairs) -> None:
    public_key = key_pairs[1].public_key
    for text in ("", "a", "x" * 120):
        block = CryptoService.rsa_encrypt(text, public_key)
        assert len(block) == KEY_BLOCK_LENGTH
        assert CryptoService.rsa_decrypt(block, key_pairs[1].private_key) == text


def test_rsa_decrypt_with_wrong_key_fails(key_pairs) -> None:
    block = CryptoService.rsa_encrypt("secret", key_pairs[1].public_key)
    with pytest.raises(DecryptionError):
        CryptoService.rsa_decrypt(block, key_pairs[2].private_key)


def test_symmetric_encryption_is_authenticated() -> None:
    key = CryptoService.create_symmetric_key()
    other = CryptoService.create_symmetric_key()
    body = CryptoService.sym_encrypt(key, "layer text")

    assert CryptoService.sym_decrypt(key, body) == "layer text"
    with pytest.raises(DecryptionError):
        CryptoService.sym_decrypt(other, body)


def test_symmetric_decrypt_rejects_tampering() -> None:
    key = CryptoService.create_symmetric_key()
    raw = bytearray(b64decode_text(CryptoService.sym_encrypt(key, "layer text")))
    raw[-1] ^= 0x01
    with pytest.raises(DecryptionError):
        CryptoService.sym_decrypt(key, b64encode_text(bytes(raw)))


def test_symmetric_key_export_import() -> None:
    key = CryptoService.create_symmetric_key()
    assert CryptoService.import_symmetric_key(CryptoService.export_symmetric_key(key)) == key
    with pytest.raises(DecryptionError):
        CryptoService.import_symmetric_key(b64encode_text(b"too short"))


def test_b64decode_text_is_strict() -> None:
    assert b64decode_text(b64encode_text("hello")) == b"hello"
    with pytest.raises(DecryptionError):
        b64decode_text("hello world")
