from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from notifier.errors import AuthFault
from notifier.routers.deps import get_adapter, get_ingestor
from notifier.services import CallbackIngestor
from notifier.types import MessagingAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["webhooks"])

EVENT_RECEIVED = "EVENT_RECEIVED"


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    adapter: MessagingAdapter = Depends(get_adapter),
) -> PlainTextResponse:
    """Answer the provider's subscription handshake by echoing the challenge."""
    logger.info("webhook verification request", extra={"mode": mode, "challenge": challenge})
    try:
        echoed = adapter.verify_subscription(mode, token, challenge)
    except AuthFault:
        logger.warning("webhook verification failed", extra={"mode": mode})
        return PlainTextResponse("Forbidden", status_code=403)
    logger.info("webhook verified")
    return PlainTextResponse(echoed, status_code=200)


@router.post("/webhook", response_class=PlainTextResponse)
async def receive_webhook(
    request: Request,
    ingestor: CallbackIngestor = Depends(get_ingestor),
) -> PlainTextResponse:
    """Record delivery statuses carried by a provider callback.

    - Unrecognized envelopes are answered 404
    - Malformed nested content is ignored, never an error
    - Unexpected failures are answered 500 so the provider retries
    """
    try:
        body = await request.json()
        result = ingestor.ingest(body)
    except Exception:
        logger.exception("error processing webhook")
        return PlainTextResponse("Internal Server Error", status_code=500)

    if not result.recognized:
        return PlainTextResponse("Not Found", status_code=404)

    logger.debug(
        "webhook processed",
        extra={"recorded": result.recorded, "skipped": result.skipped, "inbound": result.inbound_messages},
    )
    return PlainTextResponse(EVENT_RECEIVED, status_code=200)
