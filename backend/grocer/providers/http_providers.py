"""Text providers reached over plain HTTPS with a shared ``httpx.AsyncClient``."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from grocer.models.contracts import PromptSpec
from grocer.providers.base import ProviderError

log = structlog.get_logger("grocer.providers")

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
HUGGINGFACE_URL = "https://api-inference.huggingface.co/models/{model}"
MAX_TOKENS = 2000


async def _post_json(
    http_client: httpx.AsyncClient,
    provider: str,
    url: str,
    *,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float,
) -> Any:
    """POST ``payload`` and return the decoded JSON body, or raise ``ProviderError``."""
    try:
        resp = await http_client.post(url, headers=headers, json=payload, timeout=timeout)
    except httpx.TimeoutException as exc:
        raise ProviderError(provider, "timeout") from exc
    except httpx.RequestError as exc:
        raise ProviderError(provider, f"transport_error:{type(exc).__name__}") from exc

    if resp.status_code >= 400:
        raise ProviderError(provider, f"http_{resp.status_code}")
    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderError(provider, "invalid_json_body") from exc


class OpenRouterProvider:
    """OpenAI-compatible chat completions, trying each configured model in order."""

    name = "openrouter"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        models: list[str],
        timeout: float = 30.0,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._models = list(models)
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self._api_key and self._models)

    async def _complete(self, model: str, prompt: PromptSpec) -> str:
        data = await _post_json(
            self._http,
            f"{self.name}:{model}",
            OPENROUTER_URL,
            headers={"Authorization": f"Bearer {self._api_key}"},
            payload={
                "model": model,
                "messages": [
                    {"role": "system", "content": prompt.system_instruction},
                    {"role": "user", "content": prompt.user_prompt},
                ],
                "max_tokens": MAX_TOKENS,
            },
            timeout=self._timeout,
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str) or not content.strip():
            raise ProviderError(f"{self.name}:{model}", "empty_content")
        return content

    async def generate(self, prompt: PromptSpec) -> str:
        for model in self._models:
            try:
                content = await self._complete(model, prompt)
            except ProviderError as exc:
                log.warning("openrouter_model_failed", model=model, reason=exc.reason)
                continue
            log.info("openrouter_model_succeeded", model=model)
            return content
        raise ProviderError(self.name, "all_models_failed")


class HuggingFaceProvider:
    """Hugging Face serverless inference for a single text model."""

    name = "huggingface"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token: str,
        model: str,
        timeout: float = 30.0,
    ) -> None:
        self._http = http_client
        self._token = token
        self._model = model
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self._token)

    async def generate(self, prompt: PromptSpec) -> str:
        data = await _post_json(
            self._http,
            self.name,
            HUGGINGFACE_URL.format(model=self._model),
            headers={"Authorization": f"Bearer {self._token}"},
            payload={
                "inputs": f"{prompt.system_instruction}\n\n{prompt.user_prompt}",
                "parameters": {"max_length": 1000, "temperature": 0.7},
            },
            timeout=self._timeout,
        )
        # Text-generation models answer with a list; some pipelines return an object
        if isinstance(data, list):
            data = data[0] if data else {}
        text = data.get("generated_text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(self.name, "empty_content")
        return text
