"""Authoritative in-memory store of provider message statuses.

The store lives for the lifetime of the process. It is written only from the
event loop that serves webhooks, so no locking is needed.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from notifier.types import UNKNOWN_STATUS

logger = logging.getLogger(__name__)

StatusListener = Callable[[str, str], None]


class StatusStore:
    """Mapping from provider message identifier to its latest status label.

    Writes are last-write-wins upserts and are never rejected. Listeners are
    notified only when a write changes what a reader would see.
    """

    def __init__(self) -> None:
        self._statuses: Dict[str, str] = {}
        self._listeners: List[StatusListener] = []

    def record_status(self, message_id: str, state: str) -> bool:
        """Store ``state`` for ``message_id`` and return whether it changed."""
        previous = self._statuses.get(message_id)
        if previous == state:
            logger.debug("status unchanged", extra={"message_id": message_id, "state": state})
            return False

        self._statuses[message_id] = state
        logger.info(
            "status recorded",
            extra={"message_id": message_id, "state": state, "previous": previous},
        )
        for listener in list(self._listeners):
            try:
                listener(message_id, state)
            except Exception:
                logger.exception("status listener failed", extra={"message_id": message_id})
        return True

    def get_status(self, message_id: str) -> str:
        return self._statuses.get(message_id, UNKNOWN_STATUS)

    def get_all(self) -> Dict[str, str]:
        return dict(self._statuses)

    def subscribe(self, listener: StatusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._statuses)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._statuses
