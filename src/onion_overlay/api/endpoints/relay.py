"""Relay endpoints: envelope intake and debug snapshots."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from onion_overlay.api.dependencies import RelayContextDep, to_http_error
from onion_overlay.core.errors import OnionRoutingError
from onion_overlay.schemas.common import ResultResponse, StatusMessage
from onion_overlay.schemas.message import ForwardRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


@router.get("/status", response_class=PlainTextResponse)
async def status_check() -> str:
    return "live"


@router.post("/message")
async def receive_envelope(payload: ForwardRequest, relay: RelayContextDep) -> StatusMessage:
    """Peel one layer and forward the remainder, or deliver it to its user.

    Returns once the next hop has accepted the request. Failures are reported
    only here; nothing is forwarded after a failed peel.
    """
    try:
        result = await relay.handle_envelope(payload.message)
    except OnionRoutingError as exc:
        logger.warning("Relay %d rejected envelope: %s", relay.node_id, exc)
        raise to_http_error(exc) from exc

    if result.is_final:
        return StatusMessage(message="Final message delivered to user")
    return StatusMessage(message="Message forwarded successfully")


@router.get("/getLastReceivedEncryptedMessage")
async def get_last_received_encrypted_message(relay: RelayContextDep) -> ResultResponse:
    return ResultResponse(result=relay.state.last_received_encrypted_message)


@router.get("/getLastReceivedDecryptedMessage")
async def get_last_received_decrypted_message(relay: RelayContextDep) -> ResultResponse:
    return ResultResponse(result=relay.state.last_received_decrypted_message)


@router.get("/getLastMessageDestination")
async def get_last_message_destination(relay: RelayContextDep) -> ResultResponse:
    return ResultResponse(result=relay.state.last_message_destination)
