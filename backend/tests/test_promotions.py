"""Tests for promotions generation, coercion and daily caching."""

from __future__ import annotations

import json
from datetime import date

import pytest

from grocer.errors import PromotionsUnavailableError
from grocer.flows.promotions import (
    PROMOTIONS_CACHE_KEY,
    build_prompt,
    generate_promotions,
    get_current_promotions,
    validate_promotions,
)
from grocer.models.contracts import Promotion
from grocer.providers import ProviderChain
from grocer.utils.image_keywords import image_url_for_group
from grocer.utils.ttl_cache import TTLCache

TODAY = date(2026, 3, 10)


def _promo(**overrides: object) -> dict:
    promo = {
        "title": "Clover Full Cream Milk 2L - Save 15%",
        "store": "Checkers",
        "image": "image_to_be_generated",
        "imageHint": "milk carton",
        "category": "Dairy",
        "discountPercent": 15,
        "savingsAmount": "R5",
        "originalPrice": "R34.99",
        "currentPrice": "R29.99",
        "promotionType": "percentage_discount",
        "validUntil": "2026-03-20",
    }
    promo.update(overrides)
    return promo


class TestBuildPrompt:
    def test_dates_embedded(self) -> None:
        prompt = build_prompt(TODAY)
        assert "Today is 2026-03-10" in prompt.user_prompt
        assert "March 2026" in prompt.user_prompt
        assert '"validUntil": "2026-03-17"' in prompt.user_prompt
        for promo_type in ("percentage_discount", "multibuy", "price_drop", "bundle"):
            assert promo_type in prompt.user_prompt
        assert "Return ONLY valid JSON" in prompt.user_prompt


class TestValidatePromotions:
    def test_complete_promotion_kept(self) -> None:
        (promo,) = validate_promotions({"promotions": [_promo()]}, TODAY)
        assert promo.title == "Clover Full Cream Milk 2L - Save 15%"
        assert promo.discount_percent == 15
        assert promo.valid_until == "2026-03-20"
        assert promo.image == image_url_for_group("milk", 400, 300)

    def test_empty_object_fully_defaulted(self) -> None:
        promos = validate_promotions({"promotions": [_promo(), {}]}, TODAY)
        second = promos[1]
        assert second.title == "Special Offer 2"
        assert second.store == "Supermarket"
        assert second.category == "General"
        assert second.image_hint == "General"
        assert second.promotion_type == "percentage_discount"
        assert second.discount_percent is None
        assert second.valid_until == "2026-03-17"

    @pytest.mark.parametrize("valid_until", ["2026-03-10", "2025-12-01", "next week", 20260320, None])
    def test_past_or_bad_expiry_defaults_to_a_week(self, valid_until: object) -> None:
        (promo,) = validate_promotions({"promotions": [_promo(validUntil=valid_until)]}, TODAY)
        assert promo.valid_until == "2026-03-17"

    def test_timestamp_expiry_truncated_to_date(self) -> None:
        (promo,) = validate_promotions(
            {"promotions": [_promo(validUntil="2026-03-25T23:59:59Z")]}, TODAY
        )
        assert promo.valid_until == "2026-03-25"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(150, None), (-5, None), ("20%", 20.0), ("abc", None), (True, None), (12.5, 12.5)],
    )
    def test_discount_percent_bounds(self, raw: object, expected: float | None) -> None:
        (promo,) = validate_promotions({"promotions": [_promo(discountPercent=raw)]}, TODAY)
        assert promo.discount_percent == expected

    def test_unknown_promotion_type_defaulted(self) -> None:
        (promo,) = validate_promotions({"promotions": [_promo(promotionType="bogof")]}, TODAY)
        assert promo.promotion_type == "percentage_discount"

    def test_numeric_prices_formatted(self) -> None:
        (promo,) = validate_promotions(
            {"promotions": [_promo(originalPrice=88, currentPrice="  ", savingsAmount=None)]}, TODAY
        )
        assert promo.original_price == "R88.00"
        assert promo.current_price is None
        assert promo.savings_amount is None

    def test_non_objects_dropped_and_no_truncation(self) -> None:
        raw = [_promo(title=f"Deal {i}") for i in range(14)] + ["junk", 7]
        promos = validate_promotions({"promotions": raw}, TODAY)
        assert len(promos) == 14

    def test_image_uses_category_when_title_and_hint_are_generic(self) -> None:
        (promo,) = validate_promotions(
            {"promotions": [_promo(title="Weekend Deal", imageHint="special", category="Household")]},
            TODAY,
        )
        assert promo.image == image_url_for_group("household", 400, 300)

    @pytest.mark.parametrize("payload", [None, {}, {"promotions": "none"}, []])
    def test_missing_field_is_empty(self, payload: object) -> None:
        assert validate_promotions(payload, TODAY) == []


class TestGeneratePromotions:
    @pytest.mark.asyncio
    async def test_truncated_reply_recovered(self, make_provider) -> None:
        full = json.dumps({"promotions": [_promo(title="A"), _promo(title="B"), _promo(title="C")]})
        cut = full[: full.index('"C"') + 2]
        promos = await generate_promotions(ProviderChain([make_provider(cut)]), TODAY)
        assert [p.title for p in promos] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_synthetic_fallback(self) -> None:
        promos = await generate_promotions(ProviderChain([]), TODAY)
        assert len(promos) == 5
        assert {p.promotion_type for p in promos} >= {"percentage_discount", "multibuy"}


class TestGetCurrentPromotions:
    """Cache behaviour: hit, refresh, stale-on-error, unavailable."""

    @pytest.fixture
    def cache(self) -> TTLCache[list[Promotion]]:
        return TTLCache("promotions", ttl_seconds=86400)

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, make_provider, cache) -> None:
        provider = make_provider(json.dumps({"promotions": [_promo()]}))
        chain = ProviderChain([provider])
        first = await get_current_promotions(chain, cache, today=TODAY)
        second = await get_current_promotions(chain, cache, today=TODAY)
        assert second.promotions == first.promotions
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_refresh_regenerates(self, make_provider, cache) -> None:
        provider = make_provider(
            json.dumps({"promotions": [_promo(title="Old")]}),
            json.dumps({"promotions": [_promo(title="New")]}),
        )
        chain = ProviderChain([provider])
        await get_current_promotions(chain, cache, today=TODAY)
        refreshed = await get_current_promotions(chain, cache, refresh=True, today=TODAY)
        assert [p.title for p in refreshed.promotions] == ["New"]
        assert cache.get(PROMOTIONS_CACHE_KEY)[0].title == "New"

    @pytest.mark.asyncio
    async def test_empty_result_is_cached(self, make_provider, cache) -> None:
        provider = make_provider('{"promotions": []}')
        chain = ProviderChain([provider])
        assert (await get_current_promotions(chain, cache, today=TODAY)).promotions == []
        assert (await get_current_promotions(chain, cache, today=TODAY)).promotions == []
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_stale_served_when_generation_fails(self, monkeypatch) -> None:
        now = [0.0]
        cache: TTLCache[list[Promotion]] = TTLCache(
            "promotions", ttl_seconds=86400, clock=lambda: now[0]
        )
        cache.set(PROMOTIONS_CACHE_KEY, validate_promotions({"promotions": [_promo()]}, TODAY))
        now[0] += 86401

        chain = ProviderChain([])
        monkeypatch.setattr(chain, "generate", _raise_runtime)
        response = await get_current_promotions(chain, cache, today=TODAY)
        assert len(response.promotions) == 1

    @pytest.mark.asyncio
    async def test_no_cache_and_failure_is_unavailable(self, monkeypatch, cache) -> None:
        chain = ProviderChain([])
        monkeypatch.setattr(chain, "generate", _raise_runtime)
        with pytest.raises(PromotionsUnavailableError):
            await get_current_promotions(chain, cache, today=TODAY)


async def _raise_runtime(prompt: object) -> str:
    raise RuntimeError("synthetic provider broke")
