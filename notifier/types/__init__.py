"""Core types for the notifier.

This package centralizes enums, outbound message models, adapter protocols,
callback events and the WebSocket frame schemas in one place. Most modules
should import types from here rather than directly from submodules.

Usage:
    from notifier.types import TemplateMessage, MessagingAdapter, DeliveryState
"""

from .enums import DeliveryState, MessageKind, ProviderStatus
from .events import InboundMessage, NormalizedEvent, StatusNotification
from .messages import OutboundMessage, TemplateMessage, TextMessage
from .protocols import MessagingAdapter
from .results import SendResult
from .api import UNKNOWN_STATUS, InitialSnapshot, StatusResponse, StatusUpdate

__all__ = [
    "DeliveryState",
    "MessageKind",
    "ProviderStatus",
    "InboundMessage",
    "NormalizedEvent",
    "StatusNotification",
    "OutboundMessage",
    "TemplateMessage",
    "TextMessage",
    "MessagingAdapter",
    "SendResult",
    "UNKNOWN_STATUS",
    "InitialSnapshot",
    "StatusResponse",
    "StatusUpdate",
]
