"""Client-side delivery items and the batch that owns them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from notifier.errors import IdentifierConflict
from notifier.types import DeliveryState

logger = logging.getLogger(__name__)

DEFAULT_CONTACT_FIELD = "Violator Contact"
MIN_CONTACT_DIGITS = 10
DEFAULT_COUNTRY_CODE = "91"

_NON_DIGITS = re.compile(r"\D")


def normalize_contact(raw: Any) -> Optional[str]:
    """Clean a spreadsheet contact cell into a dialable number.

    Keeps a leading ``+``, strips everything else that is not a digit and
    rejects numbers shorter than ten digits. Bare ten-digit numbers get the
    default country code; longer bare numbers are assumed to carry one.
    """
    if raw is None or isinstance(raw, bool):
        return None
    mobile = str(raw).strip()
    if not mobile:
        return None

    if mobile.startswith("+"):
        mobile = "+" + _NON_DIGITS.sub("", mobile[1:])
    else:
        mobile = _NON_DIGITS.sub("", mobile)

    if len(mobile) < MIN_CONTACT_DIGITS:
        return None
    if mobile.startswith("+"):
        return mobile
    if len(mobile) == MIN_CONTACT_DIGITS:
        return DEFAULT_COUNTRY_CODE + mobile
    return "+" + mobile


@dataclass
class DeliveryItem:
    index: int
    destination: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    state: DeliveryState = DeliveryState.IDLE
    provider_id: Optional[str] = None


class Batch:
    """Ordered delivery items plus the identifier map used for reconciliation.

    ``identifier -> index`` is kept alongside ``index -> identifier`` so
    incoming status events resolve in constant time.
    """

    def __init__(self, items: Iterable[DeliveryItem] = ()) -> None:
        self._items: List[DeliveryItem] = list(items)
        self._index_by_id: Dict[str, int] = {}
        for item in self._items:
            if item.provider_id:
                self._index_by_id[item.provider_id] = item.index

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Mapping[str, Any]]]) -> "Batch":
        return cls(
            DeliveryItem(index=i, destination=destination, payload=dict(payload or {}))
            for i, (destination, payload) in enumerate(pairs)
        )

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]], contact_field: str = DEFAULT_CONTACT_FIELD) -> "Batch":
        """Build a batch from normalized spreadsheet rows.

        Rows without a usable contact are left out; the remaining rows are
        indexed in order.
        """
        pairs = []
        dropped = 0
        for row in rows:
            destination = normalize_contact(row.get(contact_field))
            if destination is None:
                dropped += 1
                continue
            pairs.append((destination, row))
        if dropped:
            logger.info("rows without a usable contact skipped", extra={"dropped": dropped})
        return cls.from_pairs(pairs)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[DeliveryItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> DeliveryItem:
        if index < 0:
            raise IndexError(index)
        return self._items[index]

    def assign_identifier(self, index: int, message_id: str) -> None:
        """Record the provider identifier for ``index``; it can never change afterwards."""
        item = self[index]
        if item.provider_id is not None:
            if item.provider_id == message_id:
                return
            raise IdentifierConflict(index, item.provider_id, message_id)
        owner = self._index_by_id.get(message_id)
        if owner is not None and owner != index:
            raise IdentifierConflict(owner, message_id, message_id)
        item.provider_id = message_id
        self._index_by_id[message_id] = index

    def index_of(self, message_id: str) -> Optional[int]:
        return self._index_by_id.get(message_id)

    def identifiers(self) -> Dict[int, str]:
        return {index: message_id for message_id, index in self._index_by_id.items()}

    def state_map(self) -> Dict[int, DeliveryState]:
        return {item.index: item.state for item in self._items}
