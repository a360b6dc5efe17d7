"""Free-text rendering of a fine notice from a spreadsheet row."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

MISSING = "N/A"

FIELD_ALIASES: dict[str, Sequence[str]] = {
    "name": ("Name", "Violator Name", "Name of Violator"),
    "amount": ("Amount", "Challan Amount", "Fine Amount", "Total Amount"),
    "challan_no": ("Challan No", "Challan Number", "Challan ID"),
    "date": ("Date", "Challan Date", "Issue Date"),
    "violation": ("Violation", "Violation Type", "Offense"),
    "vehicle": ("Vehicle Number", "Vehicle No", "Registration No"),
    "location": ("Location", "Place", "Violation Location"),
}


def pick_field(row: Mapping[str, Any], key: str) -> str:
    """Return the first non-empty value among the aliases for ``key``."""
    for column in FIELD_ALIASES[key]:
        value = row.get(column)
        if value is not None and str(value).strip():
            return str(value)
    return MISSING


def format_fine_message(row: Mapping[str, Any]) -> str:
    fields = {key: pick_field(row, key) for key in FIELD_ALIASES}
    return (
        "🏛️ *Traffic Challan Notification*\n"
        "\n"
        f"Dear {fields['name']},\n"
        "\n"
        "You have received a traffic challan with the following details:\n"
        "\n"
        "📋 *Challan Details:*\n"
        f"• Challan Number: {fields['challan_no']}\n"
        f"• Date: {fields['date']}\n"
        f"• Vehicle Number: {fields['vehicle']}\n"
        f"• Violation: {fields['violation']}\n"
        f"• Location: {fields['location']}\n"
        "\n"
        f"💰 *Challan Amount: ₹{fields['amount']}*\n"
        "\n"
        "Please pay the challan amount at your earliest convenience to avoid additional penalties.\n"
        "\n"
        "For any queries, please contact the traffic department.\n"
        "\n"
        "Thank you."
    )
