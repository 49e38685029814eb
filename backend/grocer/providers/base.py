"""Provider strategy interface shared by every text backend."""

from __future__ import annotations

from typing import Protocol

from grocer.models.contracts import PromptSpec


class ProviderError(Exception):
    """A text backend could not produce usable content.

    Raised for transport errors, timeouts, non-2xx responses and empty
    bodies alike. Never propagates past ``ProviderChain``.
    """

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class TextProvider(Protocol):
    """One live text-generation backend."""

    name: str

    def is_configured(self) -> bool:
        """False when credentials are missing; the chain skips the provider."""
        ...

    async def generate(self, prompt: PromptSpec) -> str:
        """Return non-empty text or raise ``ProviderError``."""
        ...
