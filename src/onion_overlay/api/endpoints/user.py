"""User endpoints: sending, receiving and debug snapshots."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse

from onion_overlay.api.dependencies import UserContextDep, to_http_error
from onion_overlay.core.errors import OnionRoutingError
from onion_overlay.schemas.common import ResultResponse, StatusMessage
from onion_overlay.schemas.message import DeliveryRequest, SendMessageRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["user"])


@router.get("/status", response_class=PlainTextResponse)
async def status_check() -> str:
    return "live"


@router.post("/message", response_class=PlainTextResponse)
async def receive_message(payload: DeliveryRequest, user: UserContextDep) -> str:
    """Accept a final delivery from the last relay."""
    try:
        user.receive(payload.message, payload.encoding)
    except OnionRoutingError as exc:
        logger.warning("User %d rejected delivery: %s", user.user_id, exc)
        raise to_http_error(exc) from exc
    return "success"


@router.post("/sendMessage")
async def send_message(payload: SendMessageRequest, user: UserContextDep) -> StatusMessage:
    """Send a message to another user through a fresh three-relay circuit.

    Args:
        payload: Plaintext and destination user id
        user: This user's context

    Returns:
        Acknowledgment that the entry relay accepted the envelope

    Raises:
        HTTPException: 400 for a bad destination, 502 if the directory or
            entry relay is unreachable, 503 if too few relays exist
    """
    try:
        await user.send_message(payload.message, payload.destination_user_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except OnionRoutingError as exc:
        logger.warning("User %d could not send: %s", user.user_id, exc)
        raise to_http_error(exc) from exc
    return StatusMessage(message="Message sent successfully")


@router.get("/getLastReceivedMessage")
async def get_last_received_message(user: UserContextDep) -> ResultResponse:
    received = user.state.last_received_message
    return ResultResponse(
        result=received.decode("utf-8", errors="replace") if received is not None else None
    )


@router.get("/getLastSentMessage")
async def get_last_sent_message(user: UserContextDep) -> ResultResponse:
    return ResultResponse(result=user.state.last_sent_message)


@router.get("/getLastCircuit")
async def get_last_circuit(user: UserContextDep) -> ResultResponse:
    return ResultResponse(result=user.state.last_circuit)
