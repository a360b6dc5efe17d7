"""WebSocket observer that feeds server status frames into a reconciler."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

import websockets

from notifier.dispatch.reconciler import ClientReconciler

if TYPE_CHECKING:
    from server.config import Settings

logger = logging.getLogger(__name__)

UpdateFn = Callable[[int], None]


class StatusListener:
    """Connects to the status channel and applies every frame it receives.

    ``on_update`` is called with the index of each item whose displayed state
    changed, so a view can redraw just that row.
    """

    def __init__(
        self,
        url: str,
        reconciler: ClientReconciler,
        on_update: Optional[UpdateFn] = None,
    ) -> None:
        self.url = url
        self.reconciler = reconciler
        self.on_update = on_update

    @classmethod
    def from_settings(
        cls,
        reconciler: ClientReconciler,
        settings: "Settings",
        on_update: Optional[UpdateFn] = None,
    ) -> "StatusListener":
        return cls(settings.websocket_url, reconciler, on_update=on_update)

    def handle_frame(self, raw: Any) -> Optional[int]:
        """Apply one raw frame; malformed frames are logged and skipped."""
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("unparseable status frame", extra={"frame": str(raw)[:200]})
            return None
        if not isinstance(data, dict):
            logger.warning("status frame is not an object", extra={"frame": str(raw)[:200]})
            return None

        index = self.reconciler.apply(data)
        if index is not None and self.on_update is not None:
            self.on_update(index)
        return index

    async def listen(self) -> None:
        """Receive frames until the server closes the connection."""
        logger.info("connecting to status channel", extra={"url": self.url})
        try:
            async with websockets.connect(self.url) as ws:
                logger.info("status channel connected", extra={"url": self.url})
                async for raw in ws:
                    self.handle_frame(raw)
        except websockets.ConnectionClosed as e:
            logger.info("status channel closed", extra={"url": self.url, "reason": str(e)})
        logger.info("status channel disconnected", extra={"url": self.url})
