"""FastAPI dependencies resolving the services owned by the running app.

The store, channel and ingestor are created by ``server.app.create_app`` and
live on ``app.state`` for the lifetime of the process.
"""

from __future__ import annotations

from starlette.requests import HTTPConnection

from notifier.services import BroadcastChannel, CallbackIngestor, StatusStore
from notifier.types import MessagingAdapter


def get_status_store(connection: HTTPConnection) -> StatusStore:
    return connection.app.state.status_store


def get_broadcast_channel(connection: HTTPConnection) -> BroadcastChannel:
    return connection.app.state.broadcast


def get_ingestor(connection: HTTPConnection) -> CallbackIngestor:
    return connection.app.state.ingestor


def get_adapter(connection: HTTPConnection) -> MessagingAdapter:
    return connection.app.state.adapter


def get_app_settings(connection: HTTPConnection):
    return connection.app.state.settings
