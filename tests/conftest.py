from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from server.app import create_app
from server.config import Settings

@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "test")
    # Safe defaults for the WhatsApp adapter
    monkeypatch.setenv("WHATSAPP_GRAPH_URL", "https://graph.facebook.com")
    monkeypatch.setenv("WHATSAPP_API_VERSION", "v22.0")
    monkeypatch.setenv("WHATSAPP_PHONE_NUMBER_ID", "1234567890")
    monkeypatch.setenv("WHATSAPP_ACCESS_TOKEN", "test-token")
    monkeypatch.setenv("WHATSAPP_TEMPLATE_NAME", "challan_notice")
    monkeypatch.setenv("WEBHOOK_VERIFY_TOKEN", "verify-secret")
    monkeypatch.setenv("OBSERVER_QUEUE_SIZE", "100")

@pytest.fixture()
def app() -> FastAPI:
    return create_app(settings=Settings())

@pytest.fixture()
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    # Entering the client keeps HTTP calls and sockets on one event loop.
    with TestClient(app) as test_client:
        yield test_client

