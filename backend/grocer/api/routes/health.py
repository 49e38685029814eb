"""Health check endpoint.

Reports which text providers have credentials and how full the in-process
caches are. Always returns 200 so load balancers keep routing; an empty
provider list only means every answer is synthetic.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from grocer.config import settings
from grocer.services import GroceryServices, get_services

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(services: GroceryServices = Depends(get_services)) -> dict:
    chain = services.chain
    return {
        "status": "ok",
        "version": "0.1.0",
        "environment": settings.environment,
        "providers": chain.configured_providers(),
        "synthetic_only": chain.use_synthetic or not chain.configured_providers(),
        "caches": {
            "promotions": len(services.promotions_cache),
            "product_images": len(services.images.cache),
        },
    }
