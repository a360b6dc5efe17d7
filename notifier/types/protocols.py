from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .events import NormalizedEvent
from .messages import OutboundMessage
from .results import SendResult


class MessagingAdapter(Protocol):
    """Protocol for messaging providers.

    Concrete implementations encapsulate provider-specific HTTP and webhook
    normalization so routers and the dispatch sequencer remain
    provider-agnostic.

    Responsibilities:
        - Convert `OutboundMessage` to provider payloads and send
        - Answer the provider's webhook subscription handshake
        - Normalize provider webhook bodies to `NormalizedEvent`

    Minimal example:
        >>> import httpx
        >>> from notifier.types import MessagingAdapter, NormalizedEvent, OutboundMessage, SendResult
        >>> class ExampleAdapter(MessagingAdapter):
        ...     def send_endpoint(self) -> str:  # type: ignore[override]
        ...         return "https://example.com/send"
        ...     def send_message(self, message: OutboundMessage) -> SendResult:
        ...         with httpx.Client(timeout=10) as client:
        ...             r = client.post(self.send_endpoint(), json=message.to_payload())
        ...             r.raise_for_status()
        ...         return SendResult(message_id=r.json().get("id"))
        ...     def is_configured(self) -> bool:
        ...         return True
        ...     def verify_subscription(self, mode, token, challenge):
        ...         return challenge or ""
        ...     def normalize_event(self, body):
        ...         return NormalizedEvent(recognized=True)
    """

    def send_endpoint(self) -> str:
        """Return the full URL endpoint used for sending messages."""
        ...

    def is_configured(self) -> bool:
        """Return whether credentials needed for sending are present."""
        ...

    def send_message(self, message: OutboundMessage) -> SendResult:
        """Send an outbound message.

        Implementations raise `SendFault` when the provider rejects the send
        or does not return an identifier.
        """
        ...

    def verify_subscription(
        self, mode: Optional[str], token: Optional[str], challenge: Optional[str]
    ) -> str:
        """Return the challenge to echo, or raise `AuthFault`."""
        ...

    def normalize_event(self, body: Dict[str, Any]) -> NormalizedEvent:
        """Normalize an inbound webhook payload to a common shape."""
        ...
