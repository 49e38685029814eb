"""Tests for store product listing and concurrent image attachment."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from grocer.flows.product_image import ImageService
from grocer.flows.store_products import (
    MAX_PRODUCTS,
    PLACEHOLDER_IMAGE,
    attach_images,
    build_prompt,
    get_store_products,
    validate_products,
)
from grocer.models.contracts import Product
from grocer.providers import ProviderChain
from grocer.utils.image_keywords import image_url_for_group, resolve_image_url


def _raw(i: int, **overrides: object) -> dict:
    item = {
        "id": i,
        "name": f"Product {i}",
        "price": f"R {i}.99",
        "onSpecial": False,
        "image": "placeholder",
        "imageHint": "milk carton",
    }
    item.update(overrides)
    return item


def _product(i: int, hint: str = "milk carton") -> Product:
    return Product(id=i, name=f"Product {i}", price="R 1.00", image=PLACEHOLDER_IMAGE, image_hint=hint)


class TestBuildPrompt:
    def test_store_line_and_shape(self) -> None:
        prompt = build_prompt("Woolworths")
        assert "Store: Woolworths" in prompt.user_prompt
        assert "REQUIREMENTS FOR WOOLWORTHS" in prompt.user_prompt
        assert '"imageHint"' in prompt.user_prompt
        assert "Return ONLY valid JSON" in prompt.user_prompt
        assert "already seen" not in prompt.user_prompt

    def test_existing_products_listed(self) -> None:
        prompt = build_prompt("Spar", ["Clover Milk 2L", "  ", "Albany Bread"])
        assert "- Clover Milk 2L\n- Albany Bread" in prompt.user_prompt


class TestValidateProducts:
    def test_first_ten_in_order(self) -> None:
        products = validate_products({"products": [_raw(i) for i in range(1, 15)]})
        assert len(products) == MAX_PRODUCTS
        assert [p.name for p in products] == [f"Product {i}" for i in range(1, 11)]

    def test_anchor_fields_must_be_strings(self) -> None:
        raw = [
            _raw(1),
            _raw(2, name=None),
            _raw(3, price=12.5),
            _raw(4, imageHint=["milk"]),
            _raw(5, name="   "),
            "not an object",
            _raw(6),
        ]
        products = validate_products({"products": raw})
        assert [p.name for p in products] == ["Product 1", "Product 6"]

    def test_ids_assigned_by_surviving_position(self) -> None:
        raw = [_raw(1, id=None), _raw(2, name=None), _raw(3, id="x"), _raw(4, id=-2)]
        products = validate_products({"products": raw})
        assert [p.id for p in products] == [1, 2, 3]

    def test_duplicate_ids_made_unique(self) -> None:
        raw = [_raw(1, id=2), _raw(2, id=2), _raw(3, id=2)]
        ids = [p.id for p in validate_products({"products": raw})]
        assert ids[0] == 2
        assert len(set(ids)) == 3
        assert all(i >= 1 for i in ids)

    def test_defaults_and_coercion(self) -> None:
        raw = _raw(
            1,
            name="  Clover Milk  ",
            onSpecial="true",
            originalPrice=32.5,
            image="https://model-made-this-up.example/x.png",
        )
        (product,) = validate_products({"products": [raw]})
        assert product.name == "Clover Milk"
        assert product.on_special is True
        assert product.original_price == "R 32.50"
        assert product.image == PLACEHOLDER_IMAGE

    def test_data_ai_hint_accepted(self) -> None:
        raw = _raw(1)
        del raw["imageHint"]
        raw["dataAiHint"] = "bread loaf"
        assert validate_products({"products": [raw]})[0].image_hint == "bread loaf"

    @pytest.mark.parametrize("payload", [None, {}, {"products": {"a": 1}}, [1, 2]])
    def test_missing_field_is_empty(self, payload: object) -> None:
        assert validate_products(payload) == []


class TestAttachImages:
    """Fan-out with per-element isolation."""

    @pytest.mark.asyncio
    async def test_lookups_run_concurrently(self) -> None:
        in_flight = 0
        peak = 0

        async def image_for(hint: str, title: str | None = None) -> str:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return f"https://img.example/{title}"

        images = MagicMock(spec=ImageService)
        images.image_for = image_for
        products = await attach_images([_product(i) for i in range(1, 6)], images)

        assert peak == 5
        assert [p.image for p in products] == [
            f"https://img.example/Product {i}" for i in range(1, 6)
        ]

    @pytest.mark.asyncio
    async def test_one_failure_falls_back_locally(self) -> None:
        images = MagicMock(spec=ImageService)
        images.image_for = AsyncMock(
            side_effect=["https://img.example/1", RuntimeError("boom"), "https://img.example/3"]
        )
        products = [_product(1), _product(2, hint="chicken breast"), _product(3)]
        attached = await attach_images(products, images)

        assert attached[0].image == "https://img.example/1"
        assert attached[1].image == resolve_image_url("Product 2", "chicken breast")
        assert attached[1].image == image_url_for_group("meat")
        assert attached[2].image == "https://img.example/3"

    @pytest.mark.asyncio
    async def test_empty_list(self) -> None:
        assert await attach_images([], MagicMock(spec=ImageService)) == []


class TestGetStoreProducts:
    @pytest.mark.asyncio
    async def test_end_to_end_with_keyword_images(self, make_provider, services) -> None:
        reply = json.dumps({"products": [_raw(1, imageHint="milk carton"), _raw(2, price=None)]})
        provider = make_provider(reply)
        response = await get_store_products(
            ProviderChain([provider]), services.images, " Checkers ", ["Clover Milk"]
        )
        assert len(response.products) == 1
        assert response.products[0].image == image_url_for_group("milk")
        assert "Store: Checkers" in provider.prompts[0].user_prompt

    @pytest.mark.asyncio
    async def test_unparseable_reply_is_empty(self, make_provider, services) -> None:
        chain = ProviderChain([make_provider("Sorry, no products today.")])
        response = await get_store_products(chain, services.images, "Spar")
        assert response.products == []

    @pytest.mark.asyncio
    async def test_truncated_reply_keeps_complete_products(self, make_provider, services) -> None:
        full = json.dumps({"products": [_raw(1), _raw(2), _raw(3)]})
        cut = full[: full.index('"Product 3"') + 5]
        response = await get_store_products(
            ProviderChain([make_provider(cut)]), services.images, "Spar"
        )
        assert [p.id for p in response.products] == [1, 2]
