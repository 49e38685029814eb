"""Store product listing: prompt, validate, then attach product photos."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog

from grocer.flows.product_image import ImageService
from grocer.models.contracts import GetStoreProductsResponse, Product, PromptSpec
from grocer.providers.chain import ProviderChain
from grocer.utils.coerce import as_bool, as_number, as_positive_int, clean_str, dict_list
from grocer.utils.image_keywords import resolve_image_url
from grocer.utils.json_extract import extract_json
from grocer.utils.prompts import render_prompt

log = structlog.get_logger("grocer.store_products")

MAX_PRODUCTS = 10
PLACEHOLDER_IMAGE = "placeholder"
SYSTEM_INSTRUCTION = (
    "You are a South African grocery catalogue assistant. "
    "Return ONLY valid JSON."
)


def build_prompt(store_name: str, existing_products: Sequence[str] = ()) -> PromptSpec:
    existing = [p.strip() for p in existing_products if p.strip()]
    section = ""
    if existing:
        section = (
            "\nThe shopper has already seen these products; list different ones:\n"
            + "\n".join(f"- {p}" for p in existing)
            + "\n"
        )
    return PromptSpec(
        system_instruction=SYSTEM_INSTRUCTION,
        user_prompt=render_prompt(
            "store_products",
            store_name=store_name,
            store_name_upper=store_name.upper(),
            existing_products=section,
        ),
    )


def _price_text(value: Any) -> str | None:
    text = clean_str(value)
    if text is not None:
        return text
    number = as_number(value)
    return f"R {number:.2f}" if number is not None else None


def validate_products(payload: Any) -> list[Product]:
    """Coerce raw product entries, dropping those without a name, price or hint.

    Ids the model supplied are kept when positive and unique; otherwise the
    product's 1-based position among the surviving entries is used, bumped to
    the next free integer on collision.
    """
    raw_items = dict_list(payload, "products")
    products: list[Product] = []
    used_ids: set[int] = set()

    for item in raw_items:
        if not isinstance(item, dict):
            log.warning("product_dropped", reason="not an object")
            continue
        name = clean_str(item.get("name"))
        price = clean_str(item.get("price"))
        hint = clean_str(item.get("imageHint")) or clean_str(item.get("dataAiHint"))
        if name is None or price is None or hint is None:
            log.warning(
                "product_dropped",
                reason="missing required fields",
                item_keys=list(item.keys()),
            )
            continue

        product_id = as_positive_int(item.get("id"))
        if product_id is None or product_id in used_ids:
            product_id = len(products) + 1
            while product_id in used_ids:
                product_id += 1
        used_ids.add(product_id)

        on_special = as_bool(item.get("onSpecial", False))
        products.append(
            Product(
                id=product_id,
                name=name,
                price=price,
                on_special=on_special,
                original_price=_price_text(item.get("originalPrice")),
                image=PLACEHOLDER_IMAGE,
                image_hint=hint,
            )
        )
        if len(products) == MAX_PRODUCTS:
            break

    if len(products) < len(raw_items):
        log.info(
            "products_validated",
            raw=len(raw_items),
            valid=len(products),
            dropped=len(raw_items) - len(products),
        )
    return products


async def attach_images(products: list[Product], images: ImageService) -> list[Product]:
    """Resolve every product photo concurrently; one failed lookup never sinks the rest."""
    tasks = [images.image_for(p.image_hint, title=p.name) for p in products]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    attached: list[Product] = []
    for product, result in zip(products, results, strict=True):
        if isinstance(result, BaseException):
            log.warning(
                "product_image_failed",
                product=product.name,
                error_type=type(result).__name__,
            )
            result = resolve_image_url(product.name, product.image_hint)
        attached.append(product.model_copy(update={"image": result}))
    return attached


async def get_store_products(
    chain: ProviderChain,
    images: ImageService,
    store_name: str,
    existing_products: Sequence[str] = (),
) -> GetStoreProductsResponse:
    store_name = store_name.strip()
    text = await chain.generate(build_prompt(store_name, existing_products))
    products = validate_products(extract_json(text, array_field="products"))
    products = await attach_images(products, images)
    log.info("store_products_generated", store=store_name, count=len(products))
    return GetStoreProductsResponse(products=products)
