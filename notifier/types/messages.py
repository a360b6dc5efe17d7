from __future__ import annotations

from typing import Any, Dict, Literal

from pydantic import BaseModel, field_validator

from .enums import MessageKind


class OutboundMessage(BaseModel):
    """Base class for messages sent through the provider.

    Anatomy:
    - to: destination phone number in international format
    - message_type: discriminator selecting the send mode

    Example:
        >>> from notifier.types import TemplateMessage
        >>> TemplateMessage(to="919876543210", template_name="hello_world").to_payload()["type"]
        'template'
    """

    to: str
    message_type: MessageKind

    @field_validator("to")
    @classmethod
    def _validate_destination(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("destination is required")
        return v.strip()

    def to_payload(self) -> Dict[str, Any]:
        """Return the provider request body for this message."""
        raise NotImplementedError


class TemplateMessage(OutboundMessage):
    """Pre-approved template send (the primary, structured mode).

    Fields:
        template_name: name of an approved template on the business account
        language_code: template language, e.g. ``en_US``
    """

    template_name: str
    language_code: str = "en_US"
    message_type: Literal[MessageKind.TEMPLATE] = MessageKind.TEMPLATE

    def to_payload(self) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": self.to,
            "type": "template",
            "template": {
                "name": self.template_name,
                "language": {"code": self.language_code},
            },
        }


class TextMessage(OutboundMessage):
    """Free-text send, used as the fallback when the template send fails."""

    body: str
    message_type: Literal[MessageKind.TEXT] = MessageKind.TEXT

    @field_validator("body")
    @classmethod
    def _validate_body(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("text body cannot be empty")
        # WhatsApp rejects text bodies over 4096 characters
        if len(v) > 4096:
            raise ValueError("text body exceeds 4096 characters")
        return v

    def to_payload(self) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": self.to,
            "type": "text",
            "text": {"body": self.body},
        }
