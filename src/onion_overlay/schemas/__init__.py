"""Pydantic schemas for the overlay's HTTP interfaces."""

from .common import ResultResponse, StatusMessage
from .directory import NodeRecord, NodeRegistryResponse, RegisterNodeRequest, RegisterNodeResponse
from .message import DeliveryRequest, ForwardRequest, SendMessageRequest

__all__ = [
    "ResultResponse",
    "StatusMessage",
    "NodeRecord",
    "NodeRegistryResponse",
    "RegisterNodeRequest",
    "RegisterNodeResponse",
    "ForwardRequest",
    "DeliveryRequest",
    "SendMessageRequest",
]
