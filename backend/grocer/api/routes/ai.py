"""Grocery AI endpoints.

Thin adapters: validate the request, hand it to a flow with the shared
services, return the flow's contract model. GET variants exist for the
operations the web client calls with query strings.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from grocer.flows.import_list import import_list
from grocer.flows.price_estimates import get_price_estimates
from grocer.flows.product_image import generate_product_image
from grocer.flows.promotions import get_current_promotions
from grocer.flows.store_products import get_store_products
from grocer.flows.suggestions import suggest_item_completions
from grocer.models.contracts import (
    GenerateProductImageRequest,
    GenerateProductImageResponse,
    GetCurrentPromotionsResponse,
    GetPriceEstimatesRequest,
    GetPriceEstimatesResponse,
    GetStoreProductsRequest,
    GetStoreProductsResponse,
    ImportListRequest,
    ImportListResponse,
    SuggestItemCompletionsRequest,
    SuggestItemCompletionsResponse,
)
from grocer.services import GroceryServices, get_services

logger = structlog.get_logger()

router = APIRouter(tags=["ai"])

ModelT = TypeVar("ModelT", bound=BaseModel)


def _validate_query(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate query-string input with the same rules (and 400 shape) as bodies."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(
            [
                {"loc": ("query", *err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in exc.errors()
            ]
        ) from exc


def _existing_products_param(raw: str | None) -> Any:
    if raw is None or not raw.strip():
        return []
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RequestValidationError(
            [
                {
                    "loc": ("query", "existingProducts"),
                    "msg": "must be a JSON array of strings",
                    "type": "json_invalid",
                }
            ]
        ) from exc


# === Suggestions ===


@router.get(
    "/suggest-item-completions",
    response_model=SuggestItemCompletionsResponse,
    response_model_exclude_none=True,
)
async def suggest_item_completions_get(
    q: str = Query(min_length=1),
    services: GroceryServices = Depends(get_services),
) -> SuggestItemCompletionsResponse:
    return await suggest_item_completions(services.chain, q)


@router.post(
    "/suggest-item-completions",
    response_model=SuggestItemCompletionsResponse,
    response_model_exclude_none=True,
)
async def suggest_item_completions_post(
    body: SuggestItemCompletionsRequest,
    services: GroceryServices = Depends(get_services),
) -> SuggestItemCompletionsResponse:
    return await suggest_item_completions(services.chain, body.query)


# === Store products ===


@router.get(
    "/get-store-products",
    response_model=GetStoreProductsResponse,
    response_model_exclude_none=True,
)
async def get_store_products_get(
    store: str = Query(min_length=1),
    existing_products: str | None = Query(default=None, alias="existingProducts"),
    services: GroceryServices = Depends(get_services),
) -> GetStoreProductsResponse:
    body = _validate_query(
        GetStoreProductsRequest,
        {"storeName": store, "existingProducts": _existing_products_param(existing_products)},
    )
    return await get_store_products(
        services.chain, services.images, body.store_name, body.existing_products
    )


@router.post(
    "/get-store-products",
    response_model=GetStoreProductsResponse,
    response_model_exclude_none=True,
)
async def get_store_products_post(
    body: GetStoreProductsRequest,
    services: GroceryServices = Depends(get_services),
) -> GetStoreProductsResponse:
    return await get_store_products(
        services.chain, services.images, body.store_name, body.existing_products
    )


# === Promotions ===


@router.get(
    "/get-current-promotions",
    response_model=GetCurrentPromotionsResponse,
    response_model_exclude_none=True,
)
async def get_current_promotions_get(
    services: GroceryServices = Depends(get_services),
) -> GetCurrentPromotionsResponse:
    return await get_current_promotions(services.chain, services.promotions_cache)


@router.post(
    "/get-current-promotions",
    response_model=GetCurrentPromotionsResponse,
    response_model_exclude_none=True,
)
async def get_current_promotions_refresh(
    services: GroceryServices = Depends(get_services),
) -> GetCurrentPromotionsResponse:
    logger.info("promotions_refresh_requested")
    return await get_current_promotions(services.chain, services.promotions_cache, refresh=True)


# === Price estimates ===


@router.post(
    "/get-price-estimates",
    response_model=GetPriceEstimatesResponse,
    response_model_exclude_none=True,
)
async def get_price_estimates_post(
    body: GetPriceEstimatesRequest,
    services: GroceryServices = Depends(get_services),
) -> GetPriceEstimatesResponse:
    return await get_price_estimates(
        services.chain, body.shopping_list, body.latitude, body.longitude
    )


# === Product image ===


@router.get(
    "/generate-product-image",
    response_model=GenerateProductImageResponse,
    response_model_exclude_none=True,
)
async def generate_product_image_get(
    hint: str = Query(min_length=1),
    width: int | None = Query(default=None, ge=1, le=4000),
    height: int | None = Query(default=None, ge=1, le=4000),
    services: GroceryServices = Depends(get_services),
) -> GenerateProductImageResponse:
    return await generate_product_image(services.images, hint, width, height)


@router.post(
    "/generate-product-image",
    response_model=GenerateProductImageResponse,
    response_model_exclude_none=True,
)
async def generate_product_image_post(
    body: GenerateProductImageRequest,
    services: GroceryServices = Depends(get_services),
) -> GenerateProductImageResponse:
    return await generate_product_image(services.images, body.data_ai_hint, body.width, body.height)


# === List import ===


@router.post(
    "/import-list",
    response_model=ImportListResponse,
    response_model_exclude_none=True,
)
async def import_list_post(
    body: ImportListRequest,
    services: GroceryServices = Depends(get_services),
) -> ImportListResponse:
    return await import_list(services.chain, body.text)
