"""Directory endpoints: relay registration and listing."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse

from onion_overlay.api.dependencies import RegistryDep
from onion_overlay.schemas.directory import (
    NodeRegistryResponse,
    RegisterNodeRequest,
    RegisterNodeResponse,
)
from onion_overlay.services.directory import DuplicateNodeError, NodeIdOutOfRangeError

router = APIRouter(tags=["directory"])


@router.get("/status", response_class=PlainTextResponse)
async def status_check() -> str:
    return "live"


@router.post(
    "/registerNode",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterNodeResponse,
    response_model_by_alias=True,
)
async def register_node(payload: RegisterNodeRequest, registry: RegistryDep) -> RegisterNodeResponse:
    """Register a relay's public key.

    Args:
        payload: Relay id and base64 public key
        registry: Directory registry

    Returns:
        The stored record

    Raises:
        HTTPException: 400 if the id is already registered, 422 if it has
            no relay address
    """
    try:
        record = registry.register(payload.node_id, payload.pub_key)
    except DuplicateNodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Node is already registered",
        ) from exc
    except NodeIdOutOfRangeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return RegisterNodeResponse(message="Node registered successfully", node=record)


@router.get("/getNodeRegistry", response_model=NodeRegistryResponse, response_model_by_alias=True)
async def get_node_registry(registry: RegistryDep) -> NodeRegistryResponse:
    """Return every registered relay with its public key."""
    return NodeRegistryResponse(nodes=registry.all())
