from __future__ import annotations

from enum import Enum
from typing import Optional


class DeliveryState(str, Enum):
    """Displayed state of a delivery item on the operator's side.

    Items only ever move forward along
    ``idle -> sending -> sent -> {delivered, read} | error``. ``read`` ranks
    after ``delivered`` because the provider may skip the delivered callback.

    Example:
        >>> DeliveryState.SENT.is_in_flight
        True
    """

    IDLE = "idle"
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def is_in_flight(self) -> bool:
        """True when the item must not be dispatched again."""
        return self in (
            DeliveryState.SENDING,
            DeliveryState.SENT,
            DeliveryState.DELIVERED,
            DeliveryState.READ,
        )

    @property
    def label(self) -> str:
        return _LABELS[self]

    def can_advance_to(self, target: "DeliveryState") -> bool:
        """Return whether ``target`` is a forward move from this state."""
        if target == DeliveryState.ERROR:
            return self in (DeliveryState.SENDING, DeliveryState.SENT)
        if self == DeliveryState.ERROR:
            return target == DeliveryState.SENDING
        return target.rank > self.rank


_RANKS = {
    DeliveryState.IDLE: 0,
    DeliveryState.SENDING: 1,
    DeliveryState.SENT: 2,
    DeliveryState.DELIVERED: 3,
    DeliveryState.READ: 4,
    DeliveryState.ERROR: 5,
}

_LABELS = {
    DeliveryState.IDLE: "Not Sent",
    DeliveryState.SENDING: "Sending",
    DeliveryState.SENT: "Sent",
    DeliveryState.DELIVERED: "Delivered",
    DeliveryState.READ: "Read",
    DeliveryState.ERROR: "Failed",
}


class ProviderStatus(str, Enum):
    """Status labels reported by WhatsApp in ``statuses[].status``."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"

    def to_delivery_state(self) -> DeliveryState:
        if self == ProviderStatus.FAILED:
            return DeliveryState.ERROR
        return DeliveryState(self.value)

    @classmethod
    def parse(cls, raw: object) -> Optional["ProviderStatus"]:
        """Case-insensitive lookup; unknown labels return None."""
        if not isinstance(raw, str):
            return None
        lowered = raw.strip().lower()
        for status in cls:
            if status.value == lowered:
                return status
        return None


class MessageKind(str, Enum):
    """Outbound send modes supported by the provider."""

    TEMPLATE = "template"
    TEXT = "text"
