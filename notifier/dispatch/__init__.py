"""Operator-side dispatch: batches, the paced sequencer and status reconciliation."""

from .items import Batch, DeliveryItem, normalize_contact
from .listener import StatusListener
from .reconciler import ClientReconciler
from .report import status_report_rows
from .sequencer import BatchReport, DispatchSequencer

__all__ = [
    "Batch",
    "DeliveryItem",
    "normalize_contact",
    "StatusListener",
    "ClientReconciler",
    "status_report_rows",
    "BatchReport",
    "DispatchSequencer",
]
