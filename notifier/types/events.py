from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class StatusNotification(BaseModel):
    """A single delivery-status report for a previously sent message.

    Attributes:
        message_id: Provider identifier of the outbound message (``wamid...``).
        status: Raw status label as reported (``sent``, ``delivered``, ...).
        recipient_id: Destination the message was sent to, when reported.
        timestamp: Provider timestamp string, when reported.

    Example:
        >>> StatusNotification(message_id="wamid.1", status="delivered")
    """

    message_id: str
    status: str
    recipient_id: Optional[str] = None
    timestamp: Optional[str] = None


class InboundMessage(BaseModel):
    """A message a user sent to the business number.

    Nothing in the core acts on these yet; they are surfaced so a handler
    can be attached later.
    """

    message_id: Optional[str] = None
    sender: Optional[str] = None
    message_type: Optional[str] = None
    text: str = ""
    raw: Dict[str, Any] = Field(default_factory=dict)


class NormalizedEvent(BaseModel):
    """Adapter-agnostic view of one provider callback envelope.

    Adapters map their webhook bodies onto this model. Fields are lists so a
    single callback carrying several entries and changes flattens cleanly.

    Attributes:
        recognized: Whether the envelope belongs to this provider at all.
        statuses: Well-formed status notifications, in envelope order.
        messages: Inbound user messages, in envelope order.
        skipped: Count of status entries dropped for missing fields.
    """

    recognized: bool = False
    statuses: List[StatusNotification] = Field(default_factory=list)
    messages: List[InboundMessage] = Field(default_factory=list)
    skipped: int = 0
