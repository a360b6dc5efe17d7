from __future__ import annotations

from fastapi import APIRouter, Depends

from notifier.routers.deps import get_broadcast_channel
from notifier.services import BroadcastChannel
from server.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/")
async def root(channel: BroadcastChannel = Depends(get_broadcast_channel)) -> dict:
    """Report liveness and how many dashboards are watching."""
    return {
        "status": "ok",
        "message": "WhatsApp Webhook Server is running",
        "connectedClients": channel.observer_count,
    }


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> dict:
    """Return service health status for monitoring and load balancers."""
    return {"ok": True, "service": "challan-notifier", "version": settings.app_version}


@router.get("/healthz")
async def healthz() -> dict:
    """Alternative health endpoint (kept for compatibility)."""
    return {"status": "ok"}
