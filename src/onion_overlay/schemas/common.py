"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ResultResponse(BaseModel):
    """Wrapper used by every debug endpoint."""

    result: Any = Field(None, description="Snapshot value, or null if nothing was observed yet.")


class StatusMessage(BaseModel):
    """Plain acknowledgment returned after a node accepted a request."""

    message: str
