from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket

from notifier.routers.deps import get_app_settings, get_broadcast_channel
from notifier.services import BroadcastChannel, Observer
from server.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _serve_observer(websocket: WebSocket, channel: BroadcastChannel, settings: Settings) -> None:
    await websocket.accept()
    observer = Observer(websocket.send_text, queue_size=settings.observer_queue_size)
    channel.connect(observer)
    pump = asyncio.create_task(observer.run())
    try:
        # Clients have nothing to say; frames are read only to notice the close.
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except Exception:
        logger.warning("observer channel error", extra={"observer": observer.id}, exc_info=True)
    finally:
        channel.disconnect(observer)
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump


@router.websocket("/ws")
async def status_socket(
    websocket: WebSocket,
    channel: BroadcastChannel = Depends(get_broadcast_channel),
    settings: Settings = Depends(get_app_settings),
) -> None:
    await _serve_observer(websocket, channel, settings)


@router.websocket("/")
async def root_status_socket(
    websocket: WebSocket,
    channel: BroadcastChannel = Depends(get_broadcast_channel),
    settings: Settings = Depends(get_app_settings),
) -> None:
    await _serve_observer(websocket, channel, settings)
