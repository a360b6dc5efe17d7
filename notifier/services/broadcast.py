"""Fan-out of status changes to connected dashboard observers.

Each observer owns a bounded queue drained by its own pump task, so a slow
socket never holds up the fan-out loop. Delivery is best-effort: frames for
an observer whose queue is full are dropped, closed observers are skipped,
and nothing is replayed. A newly connected observer catches up from the
snapshot it receives on connect.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional

from notifier.errors import TransportFault
from notifier.services.status_store import StatusStore
from notifier.types import InitialSnapshot, StatusUpdate

logger = logging.getLogger(__name__)

SendText = Callable[[str], Awaitable[None]]


class Observer:
    """One live observer channel with a bounded outbound queue."""

    def __init__(self, send: SendText, *, queue_size: int = 100, observer_id: Optional[str] = None) -> None:
        self.id = observer_id or uuid.uuid4().hex[:12]
        self._send = send
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=max(queue_size, 1))
        self._open = True
        self.dropped = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def offer(self, frame: str) -> bool:
        """Queue ``frame`` without blocking; return False if it was not queued."""
        if not self._open:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("observer queue full, frame dropped", extra={"observer": self.id})
            return False
        return True

    async def run(self) -> None:
        """Drain queued frames onto the channel until closed or a send fails."""
        while True:
            frame = await self._queue.get()
            if frame is None:
                break
            try:
                await self._send(frame)
            except Exception as e:
                fault = TransportFault(str(e))
                logger.warning("observer send failed", extra={"observer": self.id, "error": str(fault)})
                self._open = False
                break

    def close(self) -> None:
        if not self._open and self._queue.empty():
            return
        self._open = False
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)


class BroadcastChannel:
    """Pushes an ``initial`` snapshot on connect and ``status_update`` frames after.

    The channel subscribes to the store on construction so every visible
    status change is fanned out.
    """

    def __init__(self, store: StatusStore) -> None:
        self._store = store
        self._observers: Dict[str, Observer] = {}
        store.subscribe(self.broadcast)

    @property
    def observer_count(self) -> int:
        # Observers whose pump died stay registered until the next broadcast.
        return sum(1 for observer in self._observers.values() if observer.is_open)

    def observers(self) -> List[Observer]:
        return list(self._observers.values())

    def connect(self, observer: Observer) -> None:
        # Snapshot and registration happen in one step so no update falls between them.
        snapshot = InitialSnapshot(statuses=self._store.get_all())
        self._observers[observer.id] = observer
        observer.offer(snapshot.model_dump_json())
        logger.info(
            "observer connected",
            extra={"observer": observer.id, "statuses": len(snapshot.statuses), "observers": self.observer_count},
        )

    def disconnect(self, observer: Observer) -> None:
        if self._observers.pop(observer.id, None) is not None:
            logger.info("observer disconnected", extra={"observer": observer.id, "observers": self.observer_count})
        observer.close()

    def broadcast(self, message_id: str, state: str) -> int:
        """Queue a status update on every open observer and return how many took it."""
        frame = StatusUpdate(message_id=message_id, state=state).model_dump_json(by_alias=True)
        delivered = 0
        for observer in list(self._observers.values()):
            if not observer.is_open:
                self._observers.pop(observer.id, None)
                continue
            if observer.offer(frame):
                delivered += 1
        logger.debug("status broadcast", extra={"message_id": message_id, "delivered": delivered})
        return delivered

    def close_all(self) -> None:
        for observer in list(self._observers.values()):
            self.disconnect(observer)
