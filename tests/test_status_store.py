from __future__ import annotations

import random

from notifier.services import StatusStore


def test_unknown_identifier_returns_sentinel() -> None:
    store = StatusStore()
    assert store.get_status("wamid.missing") == "unknown"
    assert "wamid.missing" not in store


def test_last_write_wins_for_any_sequence() -> None:
    rng = random.Random(7)
    ids = [f"wamid.{n}" for n in range(5)]
    labels = ["sent", "delivered", "read", "failed"]
    store = StatusStore()
    expected: dict[str, str] = {}
    for _ in range(200):
        message_id = rng.choice(ids)
        label = rng.choice(labels)
        store.record_status(message_id, label)
        expected[message_id] = label
    assert store.get_all() == expected
    for message_id, label in expected.items():
        assert store.get_status(message_id) == label


def test_listeners_only_hear_visible_changes() -> None:
    store = StatusStore()
    heard: list[tuple[str, str]] = []
    store.subscribe(lambda message_id, state: heard.append((message_id, state)))

    assert store.record_status("wamid.1", "sent") is True
    assert store.record_status("wamid.1", "sent") is False
    assert store.record_status("wamid.1", "delivered") is True

    assert heard == [("wamid.1", "sent"), ("wamid.1", "delivered")]


def test_failing_listener_does_not_block_write_or_other_listeners() -> None:
    store = StatusStore()
    heard: list[str] = []

    def _boom(message_id: str, state: str) -> None:
        raise RuntimeError("observer gone")

    store.subscribe(_boom)
    store.subscribe(lambda message_id, state: heard.append(state))

    assert store.record_status("wamid.1", "read") is True
    assert store.get_status("wamid.1") == "read"
    assert heard == ["read"]


def test_get_all_is_a_copy() -> None:
    store = StatusStore()
    store.record_status("wamid.1", "sent")
    snapshot = store.get_all()
    snapshot["wamid.1"] = "tampered"
    assert store.get_status("wamid.1") == "sent"
    assert len(store) == 1
