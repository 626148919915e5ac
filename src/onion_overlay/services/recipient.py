"""Final-hop payload decoding."""

from __future__ import annotations

from typing import Literal

from onion_overlay.services.crypto import b64decode_text

DeliveryEncoding = Literal["base64", "raw"]


def decode_delivery(message: str, encoding: DeliveryEncoding = "base64") -> bytes:
    """Turn a delivered payload into the plaintext bytes.

    The last relay always marks its payload as ``base64``; ``raw`` exists for
    senders that talk to a user directly.

    Raises:
        DecryptionError: If a ``base64`` payload is not valid base64.
    """
    if encoding == "raw":
        return message.encode("utf-8")
    return b64decode_text(message)
