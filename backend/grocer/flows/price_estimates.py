"""Per-store price estimates for a shopping list.

Models are unreliable at arithmetic, so store totals and the cheapest flag
are always recomputed from the per-item breakdown before returning.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import structlog

from grocer.errors import ModelOutputError
from grocer.models.contracts import (
    GetPriceEstimatesResponse,
    PriceBreakdownItem,
    PromptSpec,
    StoreEstimate,
)
from grocer.providers.chain import ProviderChain
from grocer.utils.coerce import as_number, clean_str, str_or
from grocer.utils.json_extract import extract_json
from grocer.utils.prompts import render_prompt

log = structlog.get_logger("grocer.price_estimates")

SYSTEM_INSTRUCTION = (
    "You are a South African grocery pricing analyst. Return ONLY valid JSON."
)


def build_prompt(
    shopping_list: Sequence[str],
    latitude: float | None = None,
    longitude: float | None = None,
) -> PromptSpec:
    location = ""
    if latitude is not None and longitude is not None:
        location = (
            f"\nSHOPPER LOCATION: {latitude:.4f}, {longitude:.4f} "
            "(estimate store distances from here)\n"
        )
    return PromptSpec(
        system_instruction=SYSTEM_INSTRUCTION,
        user_prompt=render_prompt(
            "price_estimates",
            shopping_list="\n".join(f"- {item}" for item in shopping_list),
            location=location,
            shopping_list_inline=", ".join(shopping_list),
        ),
    )


def _breakdown(raw: Any) -> list[PriceBreakdownItem]:
    if not isinstance(raw, list):
        return []
    entries: list[PriceBreakdownItem] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        item = clean_str(entry.get("item"))
        if item is None:
            continue
        price = as_number(entry.get("price"))
        if price is None or price < 0:
            price = 0.0
        entries.append(PriceBreakdownItem(item=item, price=price))
    return entries


def coerce_stores(payload: Any) -> list[StoreEstimate]:
    raw_stores = payload.get("stores") if isinstance(payload, dict) else None
    if not isinstance(raw_stores, list):
        return []
    stores = [
        StoreEstimate(
            name=str_or(raw.get("name"), "Unknown Store"),
            distance=str_or(raw.get("distance"), "Unknown distance"),
            price_breakdown=_breakdown(raw.get("priceBreakdown")),
        )
        for raw in raw_stores
        if isinstance(raw, dict)
    ]
    if len(stores) < len(raw_stores):
        log.info("stores_validated", raw=len(raw_stores), valid=len(stores))
    return stores


def recompute_store_totals(stores: Sequence[StoreEstimate]) -> list[StoreEstimate]:
    """Derive totals from breakdowns, flag the first cheapest store, sort ascending.

    The sort is stable, so stores with equal totals keep their input order.
    Applying this to its own output changes nothing.
    """
    totaled = [
        store.model_copy(
            update={"total_price": math.fsum(p.price for p in store.price_breakdown)}
        )
        for store in stores
    ]
    if not totaled:
        return []

    cheapest = min(range(len(totaled)), key=lambda i: totaled[i].total_price)
    flagged = [
        store.model_copy(update={"is_cheapest": i == cheapest}) for i, store in enumerate(totaled)
    ]
    return sorted(flagged, key=lambda s: s.total_price)


async def get_price_estimates(
    chain: ProviderChain,
    shopping_list: Sequence[str],
    latitude: float | None = None,
    longitude: float | None = None,
) -> GetPriceEstimatesResponse:
    items = [item.strip() for item in shopping_list if item.strip()]
    if not items:
        return GetPriceEstimatesResponse(stores=[])

    text = await chain.generate(build_prompt(items, latitude, longitude))
    payload = extract_json(text, array_field="stores")
    if payload is None:
        raise ModelOutputError("Invalid response format from AI")

    stores = recompute_store_totals(coerce_stores(payload))
    log.info(
        "price_estimates_generated",
        items=len(items),
        stores=len(stores),
        cheapest=stores[0].name if stores else None,
    )
    return GetPriceEstimatesResponse(stores=stores)
