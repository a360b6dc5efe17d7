import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from notifier.errors import AuthFault, ProviderNotConfigured, SendFault
from notifier.types import (
    InboundMessage,
    MessagingAdapter,
    NormalizedEvent,
    OutboundMessage,
    SendResult,
    StatusNotification,
)

logger = logging.getLogger(__name__)

BUSINESS_ACCOUNT_OBJECT = "whatsapp_business_account"


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class WhatsAppClient(MessagingAdapter):
    """WhatsApp Cloud API adapter implementing the MessagingAdapter protocol.

    Sends template and free-text messages to an individual number, answers the
    webhook subscription handshake and flattens callback envelopes.
    """

    def __init__(self) -> None:
        self.graph_url = os.getenv("WHATSAPP_GRAPH_URL", "https://graph.facebook.com").rstrip("/")
        self.api_version = os.getenv("WHATSAPP_API_VERSION", "v22.0")
        self.phone_number_id = os.environ.get("WHATSAPP_PHONE_NUMBER_ID", "")
        self.access_token = os.environ.get("WHATSAPP_ACCESS_TOKEN", "")
        self.template_name = os.environ.get("WHATSAPP_TEMPLATE_NAME", "hello_world")
        self.template_language = os.environ.get("WHATSAPP_TEMPLATE_LANGUAGE", "en_US")
        self.verify_token = os.environ.get("WEBHOOK_VERIFY_TOKEN", "")
        self.timeout = float(os.getenv("WHATSAPP_TIMEOUT_SECONDS", "15"))

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def send_endpoint(self) -> str:  # type: ignore[override]
        return f"{self.graph_url}/{self.api_version}/{self.phone_number_id}/messages"

    def is_configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    def send_message(self, message: OutboundMessage) -> SendResult:  # type: ignore[override]
        """Send a message and return the provider-assigned identifier.

        Any HTTP error, network error or response without ``messages[0].id``
        is raised as `SendFault`.
        """
        if not self.is_configured():
            raise ProviderNotConfigured(
                "Missing WHATSAPP_PHONE_NUMBER_ID or WHATSAPP_ACCESS_TOKEN environment variables"
            )

        payload = message.to_payload()

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.send_endpoint(), headers=self._headers(), json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            try:
                error_detail = e.response.json()
            except ValueError:
                error_detail = e.response.text
            logger.warning(
                "WhatsApp API error",
                extra={"to": message.to, "status": e.response.status_code, "detail": error_detail},
            )
            raise SendFault(message.to, error_detail) from e
        except httpx.RequestError as e:
            logger.warning("WhatsApp network error", extra={"to": message.to, "detail": str(e)})
            raise SendFault(message.to, str(e)) from e
        except ValueError as e:
            raise SendFault(message.to, "Response was not JSON") from e

        data = _as_dict(data)
        first_message = _as_dict(next(iter(_as_list(data.get("messages"))), None))
        message_id = first_message.get("id")
        if not isinstance(message_id, str) or not message_id:
            raise SendFault(message.to, "Response carried no message id")

        first_contact = _as_dict(next(iter(_as_list(data.get("contacts"))), None))
        recipient = first_contact.get("wa_id")
        return SendResult(
            message_id=message_id,
            recipient=recipient if isinstance(recipient, str) else None,
            data=data,
        )

    # Webhook helpers
    def verify_subscription(
        self, mode: Optional[str], token: Optional[str], challenge: Optional[str]
    ) -> str:
        if mode == "subscribe" and self.verify_token and token == self.verify_token:
            return challenge or ""
        raise AuthFault("Webhook verification failed")

    def normalize_event(self, body: Dict[str, Any]) -> NormalizedEvent:
        """Flatten ``entry[].changes[].value`` into statuses and inbound messages.

        Missing or ill-typed nested fields contribute nothing. Status entries
        without a string ``id`` and ``status`` are counted in ``skipped``.
        """
        if not isinstance(body, dict) or body.get("object") != BUSINESS_ACCOUNT_OBJECT:
            return NormalizedEvent(recognized=False)

        event = NormalizedEvent(recognized=True)
        for entry in _as_list(body.get("entry")):
            for change in _as_list(_as_dict(entry).get("changes")):
                change = _as_dict(change)
                if change.get("field") != "messages":
                    continue
                value = _as_dict(change.get("value"))

                for raw_status in _as_list(value.get("statuses")):
                    raw_status = _as_dict(raw_status)
                    message_id = raw_status.get("id")
                    status = raw_status.get("status")
                    if not isinstance(message_id, str) or not message_id:
                        event.skipped += 1
                        continue
                    if not isinstance(status, str) or not status:
                        event.skipped += 1
                        continue
                    recipient_id = raw_status.get("recipient_id")
                    timestamp = raw_status.get("timestamp")
                    event.statuses.append(
                        StatusNotification(
                            message_id=message_id,
                            status=status,
                            recipient_id=recipient_id if isinstance(recipient_id, str) else None,
                            timestamp=str(timestamp) if timestamp is not None else None,
                        )
                    )

                for raw_message in _as_list(value.get("messages")):
                    raw_message = _as_dict(raw_message)
                    text = _as_dict(raw_message.get("text")).get("body", "")
                    event.messages.append(
                        InboundMessage(
                            message_id=raw_message.get("id") if isinstance(raw_message.get("id"), str) else None,
                            sender=raw_message.get("from") if isinstance(raw_message.get("from"), str) else None,
                            message_type=raw_message.get("type") if isinstance(raw_message.get("type"), str) else None,
                            text=text if isinstance(text, str) else "",
                            raw=raw_message,
                        )
                    )
        return event
