"""Fault types raised across the notifier core.

Ingestion faults are contained at the webhook boundary, dispatch faults are
contained per delivery item, and transport faults per observer.
"""

from __future__ import annotations


class NotifierError(Exception):
    """Base class for all notifier faults."""


class ValidationFault(NotifierError):
    """A provider callback entry did not have the expected shape."""


class AuthFault(NotifierError):
    """Webhook verification handshake did not match the configured token."""


class SendFault(NotifierError):
    """The provider rejected an outbound send or returned no identifier."""

    def __init__(self, destination: str, detail: object = None) -> None:
        self.destination = destination
        self.detail = detail
        super().__init__(f"Send to {destination} failed: {detail}")


class TransportFault(NotifierError):
    """An observer channel errored or closed while sending."""


class BatchInProgress(NotifierError):
    """A whole-batch dispatch was started while another one is running."""


class ProviderNotConfigured(NotifierError):
    """Provider credentials are missing."""


class IdentifierConflict(NotifierError):
    """A delivery item already carries a different provider identifier."""

    def __init__(self, index: int, existing: str, attempted: str) -> None:
        self.index = index
        self.existing = existing
        self.attempted = attempted
        super().__init__(
            f"Item {index} already has identifier {existing!r}, refusing {attempted!r}"
        )
