from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest
import respx

from notifier.adapters.whatsapp import WhatsAppClient
from notifier.dispatch import Batch, ClientReconciler, DeliveryItem, DispatchSequencer
from notifier.errors import BatchInProgress, ProviderNotConfigured
from notifier.types import DeliveryState, MessageKind, TemplateMessage, TextMessage
from server.config import Settings
from tests.fixtures.fakes import FakeAdapter
from tests.fixtures.whatsapp_events import challan_row, send_response


def _sequencer(adapter: FakeAdapter, size: int = 3, interval: float = 0.0, failures: List[str] = None) -> DispatchSequencer:
    batch = Batch.from_pairs((f"91987654321{n}", challan_row()) for n in range(size))
    on_failure = (lambda item: failures.append(item.destination)) if failures is not None else None
    return DispatchSequencer(
        adapter,
        ClientReconciler(batch),
        interval_seconds=interval,
        template_name="challan_notice",
        on_failure=on_failure,
    )


def _always_yes(count: int) -> bool:
    return True


@pytest.mark.asyncio
async def test_batch_sends_every_item_with_template() -> None:
    adapter = FakeAdapter(["wamid.0", "wamid.1", "wamid.2"])
    seq = _sequencer(adapter)

    report = await seq.dispatch_batch(_always_yes)

    assert report.confirmed is True
    assert report.sent == 3
    assert report.failed == []
    assert [m.to for m in adapter.sent] == ["919876543210", "919876543211", "919876543212"]
    assert all(isinstance(m, TemplateMessage) for m in adapter.sent)
    assert seq.batch.identifiers() == {0: "wamid.0", 1: "wamid.1", 2: "wamid.2"}
    assert set(seq.batch.state_map().values()) == {DeliveryState.SENT}


@pytest.mark.asyncio
async def test_sends_never_overlap_and_respect_pacing() -> None:
    interval = 0.05
    adapter = FakeAdapter(["wamid.0", None, "wamid.1x", "wamid.2"])
    seq = _sequencer(adapter, interval=interval)

    await seq.dispatch_batch(_always_yes)

    assert len(adapter.calls) == 4
    for (_, prev_end), (next_start, _) in zip(adapter.calls, adapter.calls[1:]):
        assert next_start >= prev_end
    starts = [start for start, _ in adapter.calls]
    gaps = [b - a for a, b in zip(starts, starts[1:])]
    # asyncio timers may fire a clock tick early
    assert all(gap >= interval - 0.005 for gap in gaps)


@pytest.mark.asyncio
async def test_pacing_sleeps_between_sends_only() -> None:
    slept: List[float] = []

    async def _fake_sleep(seconds: float) -> None:
        slept.append(seconds)

    adapter = FakeAdapter(["wamid.0", "wamid.1", "wamid.2"])
    seq = _sequencer(adapter, interval=1.0)
    seq._sleep = _fake_sleep

    await seq.dispatch_batch(_always_yes)
    assert slept == [1.0, 1.0]


@pytest.mark.asyncio
async def test_fallback_law_one_text_send_after_template_failure() -> None:
    adapter = FakeAdapter([None, "wamid.2x"])
    seq = _sequencer(adapter, size=1)

    state = await seq.send_item(0)

    assert state == DeliveryState.SENT
    assert [m.message_type for m in adapter.sent] == [MessageKind.TEMPLATE, MessageKind.TEXT]
    fallback = adapter.sent[1]
    assert isinstance(fallback, TextMessage)
    assert fallback.to == "919876543210"
    assert "CH-1001" in fallback.body
    assert seq.batch[0].provider_id == "wamid.2x"


@pytest.mark.asyncio
async def test_both_sends_failing_ends_in_error_without_identifier() -> None:
    failures: List[str] = []
    adapter = FakeAdapter([None, None])
    seq = _sequencer(adapter, size=1, failures=failures)

    state = await seq.send_item(0)

    assert state == DeliveryState.ERROR
    assert len(adapter.sent) == 2
    assert seq.batch[0].provider_id is None
    assert seq.batch.identifiers() == {}
    assert failures == ["919876543210"]


@pytest.mark.asyncio
async def test_failure_does_not_abort_rest_of_batch() -> None:
    adapter = FakeAdapter([None, None, "wamid.1", "wamid.2"])
    seq = _sequencer(adapter)

    report = await seq.dispatch_batch(_always_yes)

    assert report.failed == ["919876543210"]
    assert report.sent == 2
    assert seq.batch.state_map() == {0: DeliveryState.ERROR, 1: DeliveryState.SENT, 2: DeliveryState.SENT}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "state", [DeliveryState.SENDING, DeliveryState.SENT, DeliveryState.DELIVERED, DeliveryState.READ]
)
async def test_in_flight_items_are_not_redispatched(state: DeliveryState) -> None:
    adapter = FakeAdapter(["wamid.new"])
    seq = _sequencer(adapter, size=1)
    seq.batch[0].state = state

    assert await seq.send_item(0) == state
    assert adapter.sent == []


@pytest.mark.asyncio
async def test_error_item_can_be_retried() -> None:
    adapter = FakeAdapter([None, None, "wamid.retry"])
    seq = _sequencer(adapter, size=1)

    assert await seq.send_item(0) == DeliveryState.ERROR
    assert await seq.send_item(0) == DeliveryState.SENT
    assert seq.batch[0].provider_id == "wamid.retry"


@pytest.mark.asyncio
async def test_batch_skips_items_already_sent() -> None:
    adapter = FakeAdapter(["wamid.1"])
    seq = _sequencer(adapter, size=2)
    seq.batch[0].state = DeliveryState.DELIVERED

    report = await seq.dispatch_batch(_always_yes)

    assert report.skipped == 1
    assert [m.to for m in adapter.sent] == ["919876543211"]


@pytest.mark.asyncio
async def test_declined_confirmation_sends_nothing() -> None:
    asked: List[int] = []
    adapter = FakeAdapter(["wamid.0"])
    seq = _sequencer(adapter)

    report = await seq.dispatch_batch(lambda count: asked.append(count) or False)

    assert asked == [3]
    assert report.confirmed is False
    assert adapter.sent == []
    assert set(seq.batch.state_map().values()) == {DeliveryState.IDLE}


@pytest.mark.asyncio
async def test_empty_batch_is_not_confirmed() -> None:
    adapter = FakeAdapter()
    seq = DispatchSequencer(adapter, ClientReconciler(Batch()))
    report = await seq.dispatch_batch(_always_yes)
    assert report.confirmed is False


@pytest.mark.asyncio
async def test_second_batch_while_running_is_refused() -> None:
    adapter = FakeAdapter(["wamid.0", "wamid.1", "wamid.2"])
    seq = _sequencer(adapter, interval=0.05)

    first = asyncio.create_task(seq.dispatch_batch(_always_yes))
    await asyncio.sleep(0.01)
    assert seq.in_progress is True
    with pytest.raises(BatchInProgress):
        await seq.dispatch_batch(_always_yes)

    report = await first
    assert report.sent == 3
    assert seq.in_progress is False
    assert len(adapter.sent) == 3


@pytest.mark.asyncio
async def test_unconfigured_provider_refuses_before_any_state_change() -> None:
    adapter = FakeAdapter(["wamid.0"], configured=False)
    seq = _sequencer(adapter, size=1)

    with pytest.raises(ProviderNotConfigured):
        await seq.dispatch_batch(_always_yes)
    with pytest.raises(ProviderNotConfigured):
        await seq.send_item(0)
    assert seq.batch[0].state == DeliveryState.IDLE


@pytest.mark.asyncio
async def test_duplicate_identifier_from_provider_marks_error() -> None:
    batch = Batch([DeliveryItem(0, "919876543210"), DeliveryItem(1, "919876543211")])
    adapter = FakeAdapter(["wamid.same", "wamid.same"])
    seq = DispatchSequencer(adapter, ClientReconciler(batch), interval_seconds=0)

    await seq.dispatch_batch(_always_yes)

    assert batch.state_map() == {0: DeliveryState.SENT, 1: DeliveryState.ERROR}
    assert batch.identifiers() == {0: "wamid.same"}


def _assert_no_overlap(calls: List[tuple]) -> None:
    ordered = sorted(calls)
    for (_, prev_end), (next_start, _) in zip(ordered, ordered[1:]):
        assert next_start >= prev_end


@pytest.mark.asyncio
async def test_single_send_waits_for_running_batch() -> None:
    adapter = FakeAdapter(["wamid.a", "wamid.b", "wamid.c"], delay=0.05)
    seq = _sequencer(adapter)

    batch_run = asyncio.create_task(seq.dispatch_batch(_always_yes))
    await asyncio.sleep(0.01)
    assert await seq.send_item(2) == DeliveryState.SENT
    report = await batch_run

    assert len(adapter.calls) == 3
    _assert_no_overlap(adapter.calls)
    assert report.sent == 2
    assert report.skipped == 1
    assert sorted(m.to for m in adapter.sent) == ["919876543210", "919876543211", "919876543212"]
    assert set(seq.batch.state_map().values()) == {DeliveryState.SENT}


@pytest.mark.asyncio
async def test_concurrent_single_sends_are_serialized() -> None:
    adapter = FakeAdapter(["wamid.a", "wamid.b"], delay=0.03)
    seq = _sequencer(adapter, size=2)

    states = await asyncio.gather(seq.send_item(0), seq.send_item(1))

    assert states == [DeliveryState.SENT, DeliveryState.SENT]
    _assert_no_overlap(adapter.calls)


@pytest.mark.asyncio
async def test_template_defaults_to_adapter_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WHATSAPP_TEMPLATE_NAME", "fine_reminder")
    monkeypatch.setenv("WHATSAPP_TEMPLATE_LANGUAGE", "hi")
    adapter = WhatsAppClient()
    seq = DispatchSequencer(adapter, ClientReconciler(Batch.from_pairs([("919876543210", challan_row())])))

    with respx.mock:
        route = respx.post(adapter.send_endpoint()).mock(
            return_value=httpx.Response(200, json=send_response("wamid.tpl"))
        )
        assert await seq.send_item(0) == DeliveryState.SENT

    sent = json.loads(route.calls.last.request.content.decode())
    assert sent["template"] == {"name": "fine_reminder", "language": {"code": "hi"}}


def test_from_settings_reads_dispatch_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISPATCH_INTERVAL_SECONDS", "0.25")
    monkeypatch.setenv("WHATSAPP_TEMPLATE_LANGUAGE", "en_GB")

    seq = DispatchSequencer.from_settings(FakeAdapter(), ClientReconciler(Batch()), Settings())

    assert seq.interval_seconds == 0.25
    assert seq.template_name == "challan_notice"
    assert seq.language_code == "en_GB"
