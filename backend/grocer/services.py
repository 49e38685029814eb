"""Process-wide service container.

Built once in the FastAPI lifespan and stored on ``app.state``; routes reach
it through ``get_services``. Every piece of shared mutable state (the two
caches) lives here rather than in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from grocer.config import Settings
from grocer.flows.product_image import ImageService
from grocer.models.contracts import Promotion
from grocer.providers import ProviderChain, build_provider_chain
from grocer.utils.ttl_cache import TTLCache


@dataclass
class GroceryServices:
    http_client: httpx.AsyncClient
    chain: ProviderChain
    promotions_cache: TTLCache[list[Promotion]]
    images: ImageService


def build_services(
    settings: Settings,
    http_client: httpx.AsyncClient,
    chain: ProviderChain | None = None,
) -> GroceryServices:
    """Wire the provider chain and caches around one shared HTTP client."""
    return GroceryServices(
        http_client=http_client,
        chain=chain or build_provider_chain(settings, http_client),
        promotions_cache=TTLCache("promotions", ttl_seconds=settings.promotions_cache_ttl_seconds),
        images=ImageService(http_client, pexels_api_key=settings.pexels_api_key),
    )


def get_services(request: Request) -> GroceryServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("GroceryServices not initialised; is the app lifespan running?")
    return services
