"""Ordered provider fallback.

Each live provider is tried once, in order, skipping the ones without
credentials. The first non-empty reply wins. When every provider fails (or
synthetic mode is on) the synthetic provider answers, so ``generate`` always
returns text.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from grocer.models.contracts import PromptSpec
from grocer.providers.base import ProviderError, TextProvider
from grocer.providers.http_providers import HuggingFaceProvider, OpenRouterProvider
from grocer.providers.sdk_providers import AnthropicProvider, GeminiProvider
from grocer.providers.synthetic import SyntheticProvider
from grocer.utils.tracing import traceable

if TYPE_CHECKING:
    import httpx

    from grocer.config import Settings

log = structlog.get_logger("grocer.providers")


class ProviderChain:
    def __init__(
        self,
        providers: Sequence[TextProvider],
        synthetic: SyntheticProvider | None = None,
        use_synthetic: bool = False,
    ) -> None:
        self.providers = list(providers)
        self.synthetic = synthetic or SyntheticProvider()
        self.use_synthetic = use_synthetic

    def configured_providers(self) -> list[str]:
        return [p.name for p in self.providers if p.is_configured()]

    @traceable(name="provider_chain_generate", run_type="llm")
    async def generate(self, prompt: PromptSpec) -> str:
        """Return text from the first provider that answers, else synthetic text."""
        if not self.use_synthetic:
            for provider in self.providers:
                if not provider.is_configured():
                    log.debug("provider_skipped", provider=provider.name, reason="not_configured")
                    continue
                try:
                    text = await provider.generate(prompt)
                except ProviderError as exc:
                    log.warning("provider_failed", provider=provider.name, reason=exc.reason)
                    continue
                except Exception as exc:
                    log.error(
                        "provider_failed",
                        provider=provider.name,
                        reason="unexpected_error",
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    continue
                if not text or not text.strip():
                    log.warning("provider_failed", provider=provider.name, reason="empty_content")
                    continue
                log.info("provider_succeeded", provider=provider.name, response_text=text)
                return text

        log.info("provider_synthetic_fallback", prompt=prompt.user_prompt)
        return await self.synthetic.generate(prompt)


def build_provider_chain(settings: Settings, http_client: httpx.AsyncClient) -> ProviderChain:
    """Default chain: Anthropic, Gemini, OpenRouter, Hugging Face, then synthetic."""
    timeout = settings.provider_timeout_seconds
    providers: list[TextProvider] = [
        AnthropicProvider(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            timeout=timeout,
        ),
        GeminiProvider(
            model=settings.gemini_model,
            project=settings.google_cloud_project,
            location=settings.google_cloud_location,
            api_key=settings.google_ai_api_key,
            timeout=timeout,
        ),
        OpenRouterProvider(
            http_client,
            api_key=settings.openrouter_api_key,
            models=settings.openrouter_models,
            timeout=timeout,
        ),
        HuggingFaceProvider(
            http_client,
            token=settings.huggingface_token,
            model=settings.huggingface_model,
            timeout=timeout,
        ),
    ]
    return ProviderChain(providers, use_synthetic=settings.use_synthetic_responses)
