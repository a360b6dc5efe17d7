from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from notifier.dispatch.items import Batch
from notifier.types import DeliveryState, ProviderStatus

logger = logging.getLogger(__name__)


class ClientReconciler:
    """Applies broadcast status events to the operator's batch.

    Identifiers recorded by the dispatch sequencer are resolved back to item
    indexes. Events for identifiers this batch never recorded are dropped.
    Items only move forward; a late or reordered event that would move an
    item backwards is ignored.
    """

    def __init__(self, batch: Optional[Batch] = None) -> None:
        self.batch = batch if batch is not None else Batch()

    def reset(self, batch: Batch) -> None:
        """Replace the batch wholesale, forgetting every recorded identifier."""
        self.batch = batch

    def record(self, index: int, message_id: str) -> None:
        self.batch.assign_identifier(index, message_id)
        logger.debug("identifier recorded", extra={"index": index, "message_id": message_id})

    def lookup(self, message_id: str) -> Optional[int]:
        return self.batch.index_of(message_id)

    def apply(self, event: Mapping[str, Any]) -> Optional[int]:
        """Apply one broadcast frame; return the index updated, if any."""
        event_type = event.get("type")
        if event_type == "status_update":
            return self._apply_status(event.get("messageId"), event.get("state"))
        if event_type == "initial":
            statuses = event.get("statuses")
            if isinstance(statuses, Mapping):
                applied = sum(
                    1 for message_id, state in statuses.items()
                    if self._apply_status(message_id, state) is not None
                )
                logger.info("snapshot applied", extra={"statuses": len(statuses), "applied": applied})
            return None
        logger.debug("unknown event ignored", extra={"event_type": event_type})
        return None

    def _apply_status(self, message_id: Any, label: Any) -> Optional[int]:
        if not isinstance(message_id, str):
            return None
        index = self.batch.index_of(message_id)
        if index is None:
            return None
        status = ProviderStatus.parse(label)
        if status is None:
            logger.debug("unrecognized status label", extra={"message_id": message_id, "label": label})
            return None

        item = self.batch[index]
        target = status.to_delivery_state()
        if item.state == target or not item.state.can_advance_to(target):
            return None
        logger.info(
            "item state updated",
            extra={"index": index, "from_state": item.state.value, "to_state": target.value},
        )
        item.state = target
        return index

    def state_map(self) -> dict[int, DeliveryState]:
        return self.batch.state_map()
