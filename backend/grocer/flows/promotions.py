"""Current store promotions, generated once a day and cached in-process."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, get_args

import structlog

from grocer.errors import GrocerError, PromotionsUnavailableError
from grocer.models.contracts import (
    GetCurrentPromotionsResponse,
    Promotion,
    PromotionType,
    PromptSpec,
)
from grocer.providers.chain import ProviderChain
from grocer.utils.coerce import as_number, clean_str, dict_list, str_or
from grocer.utils.image_keywords import resolve_image_url
from grocer.utils.json_extract import extract_json
from grocer.utils.prompts import render_prompt
from grocer.utils.ttl_cache import TTLCache

log = structlog.get_logger("grocer.promotions")

PROMOTIONS_CACHE_KEY = "promotions"
PROMOTION_IMAGE_WIDTH = 400
PROMOTION_IMAGE_HEIGHT = 300
DEFAULT_VALIDITY_DAYS = 7
SYSTEM_INSTRUCTION = (
    "You are a South African retail promotions analyst. Return ONLY valid JSON."
)

_PROMOTION_TYPES: frozenset[str] = frozenset(get_args(PromotionType))


def build_prompt(today: date) -> PromptSpec:
    return PromptSpec(
        system_instruction=SYSTEM_INSTRUCTION,
        user_prompt=render_prompt(
            "promotions",
            today=today.isoformat(),
            month=today.strftime("%B %Y"),
            example_valid_until=(today + timedelta(days=DEFAULT_VALIDITY_DAYS)).isoformat(),
        ),
    )


def _valid_until(value: Any, today: date) -> str:
    """ISO date strictly after today; anything else becomes today + 7 days."""
    text = clean_str(value)
    if text is not None:
        try:
            parsed = date.fromisoformat(text[:10])
        except ValueError:
            parsed = None
        if parsed is not None and parsed > today:
            return parsed.isoformat()
    return (today + timedelta(days=DEFAULT_VALIDITY_DAYS)).isoformat()


def _discount_percent(value: Any) -> float | None:
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    number = as_number(value)
    if number is None or not 0 <= number <= 100:
        return None
    return number


def _price_text(value: Any) -> str | None:
    text = clean_str(value)
    if text is not None:
        return text
    number = as_number(value)
    return f"R{number:.2f}" if number is not None else None


def validate_promotions(payload: Any, today: date) -> list[Promotion]:
    """Fill defaults for every promotion object and resolve its photo."""
    raw_items = dict_list(payload, "promotions")
    promotions: list[Promotion] = []

    for index, item in enumerate(raw_items, start=1):
        if not isinstance(item, dict):
            log.warning("promotion_dropped", reason="not an object", position=index)
            continue

        raw_title = clean_str(item.get("title"))
        category = str_or(item.get("category"), "General")
        hint = clean_str(item.get("imageHint")) or clean_str(item.get("dataAiHint")) or category
        promotion_type = item.get("promotionType")
        if promotion_type not in _PROMOTION_TYPES:
            promotion_type = "percentage_discount"

        promotions.append(
            Promotion(
                title=raw_title or f"Special Offer {index}",
                store=str_or(item.get("store"), "Supermarket"),
                image=resolve_image_url(
                    raw_title,
                    hint,
                    category,
                    width=PROMOTION_IMAGE_WIDTH,
                    height=PROMOTION_IMAGE_HEIGHT,
                ),
                image_hint=hint,
                category=category,
                promotion_type=promotion_type,
                discount_percent=_discount_percent(item.get("discountPercent")),
                savings_amount=_price_text(item.get("savingsAmount")),
                original_price=_price_text(item.get("originalPrice")),
                current_price=_price_text(item.get("currentPrice")),
                valid_until=_valid_until(item.get("validUntil"), today),
            )
        )

    if len(promotions) < len(raw_items):
        log.info(
            "promotions_validated",
            raw=len(raw_items),
            valid=len(promotions),
            dropped=len(raw_items) - len(promotions),
        )
    return promotions


async def generate_promotions(chain: ProviderChain, today: date | None = None) -> list[Promotion]:
    today = today or date.today()
    text = await chain.generate(build_prompt(today))
    promotions = validate_promotions(extract_json(text, array_field="promotions"), today)
    log.info("promotions_generated", count=len(promotions))
    return promotions


async def get_current_promotions(
    chain: ProviderChain,
    cache: TTLCache[list[Promotion]],
    *,
    refresh: bool = False,
    today: date | None = None,
) -> GetCurrentPromotionsResponse:
    """Cached promotions; ``refresh=True`` forces regeneration.

    A failed generation is served from the stale cache entry when one exists
    (never after a refresh, which drops it first).
    """

    async def _generate() -> list[Promotion]:
        return await generate_promotions(chain, today)

    try:
        promotions = await cache.get_or_generate(PROMOTIONS_CACHE_KEY, _generate, refresh=refresh)
    except GrocerError:
        raise
    except Exception as exc:
        log.error(
            "promotions_unavailable",
            refresh=refresh,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise PromotionsUnavailableError("Failed to generate promotions") from exc

    return GetCurrentPromotionsResponse(promotions=promotions)
