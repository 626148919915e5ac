"""Message-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ForwardRequest(BaseModel):
    """An onion envelope handed to a relay."""

    message: str = Field(..., description="Opaque onion envelope")


class DeliveryRequest(BaseModel):
    """A fully peeled payload handed to a user."""

    message: str = Field(..., description="Final payload")
    encoding: Literal["base64", "raw"] = Field(
        "base64", description="How the payload is encoded; relays always send base64"
    )


class SendMessageRequest(BaseModel):
    """Ask a user node to send a message through a fresh circuit."""

    message: str = Field(..., description="Plaintext message")
    destination_user_id: int = Field(..., alias="destinationUserId", ge=0)

    model_config = ConfigDict(populate_by_name=True)
