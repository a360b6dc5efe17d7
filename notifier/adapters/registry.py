from __future__ import annotations

from typing import Dict

from notifier.types import MessagingAdapter
from notifier.adapters.whatsapp import WhatsAppClient


class AdapterRegistry:
    """Registry for messaging adapters by name.

    Routers and the dispatch sequencer look providers up here so an
    alternative provider can be plugged in without changing them.
    """

    _registry: Dict[str, type[MessagingAdapter]] = {
        "whatsapp": WhatsAppClient,
    }

    @classmethod
    def get(cls, name: str) -> MessagingAdapter:
        provider_cls = cls._registry.get(name)
        if provider_cls is None:
            raise KeyError(f"Unknown messaging adapter: {name}")
        return provider_cls()

    @classmethod
    def register(cls, name: str, adapter_cls: type[MessagingAdapter]) -> None:
        cls._registry[name] = adapter_cls

    @classmethod
    def names(cls) -> list[str]:
        return sorted(cls._registry)
