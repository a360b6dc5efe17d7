"""Sequential, paced dispatch of a batch through the messaging provider.

Every item is tried first as a template send; when the provider rejects it
exactly one free-text send built from the item's fields follows. Provider
calls are serialized behind one lock, so single-item retries never overlap a
running batch, and successive calls within a batch are spaced by a fixed
interval to stay inside the provider's rate limits.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from notifier.dispatch.items import Batch, DeliveryItem
from notifier.dispatch.message_format import format_fine_message
from notifier.dispatch.reconciler import ClientReconciler
from notifier.errors import BatchInProgress, IdentifierConflict, ProviderNotConfigured, SendFault
from notifier.types import DeliveryState, MessagingAdapter, OutboundMessage, TemplateMessage, TextMessage

if TYPE_CHECKING:
    from server.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "hello_world"
DEFAULT_TEMPLATE_LANGUAGE = "en_US"

ConfirmFn = Callable[[int], bool]
FailureFn = Callable[[DeliveryItem], None]
SleepFn = Callable[[float], Awaitable[None]]


def _log_failure(item: DeliveryItem) -> None:
    logger.error("Failed to send message to %s", item.destination, extra={"index": item.index})


@dataclass
class BatchReport:
    """Outcome of one batch run.

    ``failed`` lists the destination of every item that ended in ``error``,
    in batch order, for the operator view to show next to the rows.
    """

    confirmed: bool
    total: int = 0
    sent: int = 0
    skipped: int = 0
    failed: List[str] = field(default_factory=list)


class DispatchSequencer:
    """Sends a batch one item at a time and records identifiers for reconciliation.

    ``on_failure`` is the operator-facing failure signal: it is called with
    the item, whose ``destination`` names the number, each time a send ends
    in ``error``. Without one, failures are only logged, so a UI should pass
    its own. Template name and language default to the adapter's configured
    values.
    """

    def __init__(
        self,
        adapter: MessagingAdapter,
        reconciler: ClientReconciler,
        *,
        interval_seconds: float = 1.0,
        template_name: Optional[str] = None,
        language_code: Optional[str] = None,
        on_failure: Optional[FailureFn] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.adapter = adapter
        self.reconciler = reconciler
        self.interval_seconds = max(interval_seconds, 0.0)
        self.template_name = template_name or getattr(adapter, "template_name", None) or DEFAULT_TEMPLATE_NAME
        self.language_code = (
            language_code or getattr(adapter, "template_language", None) or DEFAULT_TEMPLATE_LANGUAGE
        )
        self.on_failure = on_failure or _log_failure
        self._sleep = sleep
        self._send_lock = asyncio.Lock()
        self._batch_running = False
        self._has_sent = False

    @classmethod
    def from_settings(
        cls,
        adapter: MessagingAdapter,
        reconciler: ClientReconciler,
        settings: "Settings",
        *,
        on_failure: Optional[FailureFn] = None,
    ) -> "DispatchSequencer":
        return cls(
            adapter,
            reconciler,
            interval_seconds=settings.dispatch_interval_seconds,
            template_name=settings.whatsapp_template_name,
            language_code=settings.whatsapp_template_language,
            on_failure=on_failure,
        )

    @property
    def batch(self) -> Batch:
        return self.reconciler.batch

    @property
    def in_progress(self) -> bool:
        return self._batch_running

    def _ensure_configured(self) -> None:
        if not self.adapter.is_configured():
            raise ProviderNotConfigured("Provider credentials are not configured")

    async def dispatch_batch(self, confirm: ConfirmFn) -> BatchReport:
        """Send every item in order after the operator confirms.

        Raises `BatchInProgress` when another batch is still running and
        `ProviderNotConfigured` before anything is sent when credentials are
        missing.
        """
        if self._batch_running:
            raise BatchInProgress("A batch dispatch is already in progress")

        batch = self.batch
        if len(batch) == 0:
            logger.info("no items to send")
            return BatchReport(confirmed=False)
        self._ensure_configured()
        if not confirm(len(batch)):
            logger.info("batch dispatch cancelled by operator", extra={"total": len(batch)})
            return BatchReport(confirmed=False, total=len(batch))

        self._batch_running = True
        self._has_sent = False
        report = BatchReport(confirmed=True, total=len(batch))
        logger.info("batch dispatch started", extra={"total": len(batch)})
        try:
            for item in batch:
                if item.state.is_in_flight:
                    report.skipped += 1
                    continue
                state = await self._send(item)
                if state == DeliveryState.SENT:
                    report.sent += 1
                else:
                    report.failed.append(item.destination)
        finally:
            self._batch_running = False
        logger.info(
            "batch dispatch finished",
            extra={"total": report.total, "sent": report.sent, "failed": len(report.failed), "skipped": report.skipped},
        )
        return report

    async def send_item(self, index: int) -> DeliveryState:
        """Send a single item unless it is already in flight or delivered.

        While a batch is running the send waits for the provider lock and is
        paced like the batch's own calls; the batch then skips the item.
        """
        item = self.batch[index]
        if item.state.is_in_flight:
            logger.info(
                "item already dispatched, not resending",
                extra={"index": index, "state": item.state.value},
            )
            return item.state
        self._ensure_configured()
        return await self._send(item)

    async def _send(self, item: DeliveryItem) -> DeliveryState:
        item.state = DeliveryState.SENDING

        primary = TemplateMessage(
            to=item.destination,
            template_name=self.template_name,
            language_code=self.language_code,
        )
        message_id = await self._attempt(item, primary)
        if message_id is None:
            try:
                fallback: Optional[OutboundMessage] = TextMessage(
                    to=item.destination, body=format_fine_message(item.payload)
                )
            except ValueError as e:
                logger.warning("fallback message invalid", extra={"index": item.index, "error": str(e)})
                fallback = None
            if fallback is not None:
                message_id = await self._attempt(item, fallback)

        if message_id is None:
            item.state = DeliveryState.ERROR
            self.on_failure(item)
            return item.state

        try:
            self.reconciler.record(item.index, message_id)
        except IdentifierConflict as e:
            logger.error("identifier conflict", extra={"index": item.index, "error": str(e)})
            item.state = DeliveryState.ERROR
            self.on_failure(item)
            return item.state
        item.state = DeliveryState.SENT
        return item.state

    async def _pace(self) -> None:
        # Within a batch every provider call after the first waits one interval.
        if not self._batch_running:
            return
        if self._has_sent and self.interval_seconds:
            await self._sleep(self.interval_seconds)
        self._has_sent = True

    async def _attempt(self, item: DeliveryItem, message: OutboundMessage) -> Optional[str]:
        try:
            # One provider call at a time across batch and single-item sends.
            async with self._send_lock:
                await self._pace()
                result = await asyncio.to_thread(self.adapter.send_message, message)
        except SendFault as e:
            logger.warning(
                "send failed",
                extra={"index": item.index, "mode": message.message_type.value, "error": str(e)},
            )
            return None
        except Exception:
            logger.exception(
                "unexpected send error",
                extra={"index": item.index, "mode": message.message_type.value},
            )
            return None

        if not result.message_id:
            logger.warning("send returned no identifier", extra={"index": item.index, "mode": message.message_type.value})
            return None
        logger.info(
            "message sent",
            extra={"index": item.index, "mode": message.message_type.value, "message_id": result.message_id},
        )
        return result.message_id
