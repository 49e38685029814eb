"""Shared fixtures: a scripted text provider and an in-process API client.

No fixture here touches the network. The HTTP client handed to services is
backed by ``httpx.MockTransport``; tests that exercise Pexels or the HTTP
providers pass their own handler.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio

from grocer.config import Settings
from grocer.models.contracts import PromptSpec
from grocer.providers import ProviderChain, ProviderError
from grocer.services import GroceryServices, build_services


class ScriptedProvider:
    """Provider double returning queued replies in order and recording prompts.

    A queued exception is raised instead of returned. When the queue is empty
    the provider fails, so the chain falls through to synthetic output.
    """

    def __init__(self, *replies: str | BaseException, name: str = "scripted") -> None:
        self.name = name
        self.replies: list[str | BaseException] = list(replies)
        self.prompts: list[PromptSpec] = []

    def is_configured(self) -> bool:
        return True

    def queue(self, *replies: str | BaseException) -> None:
        self.replies.extend(replies)

    async def generate(self, prompt: PromptSpec) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise ProviderError(self.name, "no_scripted_reply")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def calls(self) -> int:
        return len(self.prompts)


def _offline_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "offline", "url": str(request.url)})


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every credential blank, ignoring the developer's .env."""
    return Settings(
        _env_file=None,
        anthropic_api_key="",
        google_ai_api_key="",
        google_cloud_project="",
        openrouter_api_key="",
        huggingface_token="",
        pexels_api_key="",
        use_synthetic_responses=False,
    )


@pytest.fixture
def make_provider() -> type[ScriptedProvider]:
    """Factory for extra scripted providers (``make_provider("reply", name="x")``)."""
    return ScriptedProvider


@pytest.fixture
def scripted() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def http_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Override in a test module to script outbound HTTP."""
    return _offline_handler


@pytest_asyncio.fixture
async def services(
    test_settings: Settings,
    scripted: ScriptedProvider,
    http_handler: Callable[[httpx.Request], httpx.Response],
) -> AsyncIterator[GroceryServices]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(http_handler)) as http_client:
        yield build_services(test_settings, http_client, chain=ProviderChain([scripted]))


@pytest_asyncio.fixture
async def client(services: GroceryServices) -> AsyncIterator[httpx.AsyncClient]:
    """AsyncClient talking to the app in-process with ``services`` installed."""
    from grocer.main import app

    app.state.services = services
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    del app.state.services
