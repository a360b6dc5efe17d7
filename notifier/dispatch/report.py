from __future__ import annotations

from typing import Any, Dict, List

from notifier.dispatch.items import Batch
from notifier.dispatch.message_format import pick_field
from notifier.types import DeliveryState

SENT_STATES = (DeliveryState.SENT, DeliveryState.DELIVERED, DeliveryState.READ)
DELIVERED_STATES = (DeliveryState.DELIVERED, DeliveryState.READ)


def status_report_rows(batch: Batch) -> List[Dict[str, Any]]:
    """One row per item with sent/delivered/read flags derived from its state.

    Rows are ready for any tabular writer; producing the file itself is left
    to the caller.
    """
    rows = []
    for item in batch:
        rows.append(
            {
                "#": item.index + 1,
                "Name": pick_field(item.payload, "name"),
                "Mobile": item.destination,
                "Challan No": pick_field(item.payload, "challan_no"),
                "Vehicle No": pick_field(item.payload, "vehicle"),
                "Amount": pick_field(item.payload, "amount"),
                "Status": item.state.label,
                "Sent": item.state in SENT_STATES,
                "Delivered": item.state in DELIVERED_STATES,
                "Read": item.state == DeliveryState.READ,
            }
        )
    return rows
