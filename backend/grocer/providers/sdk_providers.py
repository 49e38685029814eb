"""Text providers backed by vendor SDKs (Anthropic, Gemini on Vertex AI or AI Studio)."""

from __future__ import annotations

import asyncio
from typing import Any

import anthropic
import structlog
from google import genai
from google.genai import types

from grocer.models.contracts import PromptSpec
from grocer.providers.base import ProviderError
from grocer.utils.tracing import wrap_client

log = structlog.get_logger("grocer.providers")

MAX_TOKENS = 4096
GEMINI_MAX_OUTPUT_TOKENS = 8192
GEMINI_TEMPERATURE = 0.2


class AnthropicProvider:
    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        client: Any | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = wrap_client(
                anthropic.AsyncAnthropic(api_key=self._api_key, timeout=self._timeout),
                "anthropic",
            )
        return self._client

    async def generate(self, prompt: PromptSpec) -> str:
        try:
            response = await self._get_client().messages.create(
                model=self._model,
                max_tokens=MAX_TOKENS,
                system=prompt.system_instruction,
                messages=[{"role": "user", "content": prompt.user_prompt}],
            )
        except anthropic.APITimeoutError as exc:
            raise ProviderError(self.name, "timeout") from exc
        except anthropic.APIStatusError as exc:
            raise ProviderError(self.name, f"http_{exc.status_code}") from exc
        except anthropic.APIError as exc:
            raise ProviderError(self.name, f"api_error:{type(exc).__name__}") from exc

        text = ""
        for block in response.content:
            if hasattr(block, "text"):
                text += block.text
        if not text.strip():
            raise ProviderError(self.name, "empty_content")

        log.info(
            "anthropic_tokens",
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self._model,
        )
        return text


class GeminiProvider:
    """Gemini through Vertex AI when a cloud project is set, else an AI Studio key."""

    name = "gemini"

    def __init__(
        self,
        model: str,
        project: str = "",
        location: str = "us-central1",
        api_key: str = "",
        timeout: float = 30.0,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._project = project
        self._location = location
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        return bool(self._project or self._api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            if self._project:
                client = genai.Client(
                    vertexai=True, project=self._project, location=self._location
                )
            else:
                client = genai.Client(api_key=self._api_key)
            self._client = wrap_client(client, "gemini")
        return self._client

    async def generate(self, prompt: PromptSpec) -> str:
        config = types.GenerateContentConfig(
            system_instruction=prompt.system_instruction,
            temperature=GEMINI_TEMPERATURE,
            max_output_tokens=GEMINI_MAX_OUTPUT_TOKENS,
        )
        try:
            response = await asyncio.wait_for(
                self._get_client().aio.models.generate_content(
                    model=self._model,
                    contents=prompt.user_prompt,
                    config=config,
                ),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            raise ProviderError(self.name, "timeout") from exc
        except Exception as exc:
            # google-genai surfaces HTTP and auth failures as several error types
            raise ProviderError(self.name, f"api_error:{type(exc).__name__}") from exc

        text = getattr(response, "text", None)
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(self.name, "empty_content")
        return text
