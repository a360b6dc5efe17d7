from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from notifier.services.status_store import StatusStore
from notifier.types import MessagingAdapter, NormalizedEvent

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    recognized: bool
    recorded: int = 0
    skipped: int = 0
    inbound_messages: int = 0


class CallbackIngestor:
    """Turns provider callbacks into status store writes."""

    def __init__(self, adapter: MessagingAdapter, store: StatusStore) -> None:
        self._adapter = adapter
        self._store = store

    def ingest(self, body: Any) -> IngestResult:
        event: NormalizedEvent = self._adapter.normalize_event(body if isinstance(body, dict) else {})
        if not event.recognized:
            return IngestResult(recognized=False)

        result = IngestResult(recognized=True, skipped=event.skipped)
        if event.skipped:
            logger.warning("malformed status entries skipped", extra={"skipped": event.skipped})

        for notification in event.statuses:
            logger.info(
                "message status",
                extra={"message_id": notification.message_id, "status": notification.status},
            )
            self._store.record_status(notification.message_id, notification.status)
            result.recorded += 1

        for message in event.messages:
            # Inbound replies are not acted on yet.
            logger.info(
                "inbound message ignored",
                extra={"message_id": message.message_id, "sender": message.sender, "type": message.message_type},
            )
            result.inbound_messages += 1

        return result
