from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_STATUS = "unknown"


class StatusResponse(BaseModel):
    """Response body for a single-identifier status query.

    Unknown identifiers are answered with ``status="unknown"`` rather than an
    error.

    Example:
        {"messageId": "wamid.1", "status": "delivered"}
    """

    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(alias="messageId")
    status: str = UNKNOWN_STATUS


class InitialSnapshot(BaseModel):
    """First frame pushed to every observer on connect."""

    type: Literal["initial"] = "initial"
    statuses: Dict[str, str] = Field(default_factory=dict)


class StatusUpdate(BaseModel):
    """Frame pushed to open observers whenever a stored status changes."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["status_update"] = "status_update"
    message_id: str = Field(alias="messageId")
    state: str
