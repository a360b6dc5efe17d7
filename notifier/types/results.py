from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class SendResult(BaseModel):
    """Standardized result returned by adapters after a successful send.

    Attributes:
        message_id: Provider-assigned identifier for the outbound message.
        recipient: Destination as echoed back by the provider (``wa_id``).
        data: Raw provider response payload for debugging.

    Example:
        >>> from notifier.types import SendResult
        >>> SendResult(message_id="wamid.1")
    """

    message_id: Optional[str] = None
    recipient: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
