"""Services package for the notifier."""

from .broadcast import BroadcastChannel, Observer
from .ingestion import CallbackIngestor, IngestResult
from .status_store import StatusStore

__all__ = [
    "BroadcastChannel",
    "Observer",
    "CallbackIngestor",
    "IngestResult",
    "StatusStore",
]
