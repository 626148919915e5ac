"""Directory-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from onion_overlay.core.errors import MissingKeyMaterialError
from onion_overlay.services.crypto import CryptoService


class NodeRecord(BaseModel):
    """A relay as known to the directory."""

    node_id: int = Field(..., alias="nodeId", ge=0, description="Relay id, unique in the directory")
    pub_key: str = Field(..., alias="pubKey", description="Base64 DER SubjectPublicKeyInfo")

    model_config = ConfigDict(populate_by_name=True)


class RegisterNodeRequest(NodeRecord):
    """Schema for registering a relay with the directory."""

    @field_validator("node_id", mode="before")
    @classmethod
    def require_integer_id(cls, value: object) -> object:
        """Refuse strings, floats and booleans that pydantic would otherwise coerce."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("nodeId must be an integer")
        return value

    @field_validator("pub_key")
    @classmethod
    def require_rsa_key(cls, value: str) -> str:
        """Only keys a sender can later encrypt to are accepted."""
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("pubKey must not be empty")
        try:
            CryptoService.import_public_key(cleaned)
        except MissingKeyMaterialError as err:
            raise ValueError(str(err)) from err
        return cleaned


class RegisterNodeResponse(BaseModel):
    """Schema returned after a successful registration."""

    message: str
    node: NodeRecord


class NodeRegistryResponse(BaseModel):
    """Schema for the full list of registered relays."""

    nodes: list[NodeRecord]
