"""Router aggregation."""

from __future__ import annotations

from fastapi import APIRouter

from notifier.routers import health as health_router_module
from notifier.routers import realtime as realtime_router_module
from notifier.routers import statuses as statuses_router_module
from notifier.routers import webhooks as webhooks_router_module

# Provider callbacks and the dashboard socket use fixed paths, so no prefix here.
api_router = APIRouter()

api_router.include_router(health_router_module.router)
api_router.include_router(webhooks_router_module.router)
api_router.include_router(statuses_router_module.router)
api_router.include_router(realtime_router_module.router)

__all__ = ["api_router"]
