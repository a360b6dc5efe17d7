from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends

from notifier.routers.deps import get_status_store
from notifier.services import StatusStore
from notifier.types import StatusResponse

router = APIRouter(prefix="/api", tags=["statuses"])


@router.get("/status/{message_id}", response_model=StatusResponse, response_model_by_alias=True)
async def get_status(message_id: str, store: StatusStore = Depends(get_status_store)) -> StatusResponse:
    """Latest known status for one message, or ``unknown``."""
    return StatusResponse(message_id=message_id, status=store.get_status(message_id))


@router.get("/statuses")
async def get_statuses(store: StatusStore = Depends(get_status_store)) -> Dict[str, str]:
    """Full snapshot of every recorded status."""
    return store.get_all()
