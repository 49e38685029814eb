"""Deterministic canned replies used when no live provider answers.

The domain is detected from the user prompt, so the canned JSON always
matches the shape the calling flow will parse. Canned store totals and
cheapest flags are intentionally inconsistent with their breakdowns, as
real model output often is; the price-estimate flow recomputes them.
"""

from __future__ import annotations

import json
import re
from datetime import date, timedelta
from typing import Any

from grocer.models.contracts import PromptSpec

_QUERY_RE = re.compile(r'"([^"]*)"')
_STORE_RE = re.compile(r"^Store: (.+)$", re.MULTILINE)

_SUGGESTIONS_BY_PREFIX: dict[str, list[str]] = {
    "mil": ["milk", "milk powder", "milkshake", "millet", "mild cheese", "milk tart",
            "milk bread", "milk chocolate"],
    "bre": ["bread", "bread rolls", "brown bread", "white bread", "bread flour",
            "bread crumbs", "bread machine", "bread knife"],
    "egg": ["eggs", "free range eggs", "large eggs", "extra large eggs", "egg carton",
            "egg whites", "egg yolk", "boiled eggs"],
    "chi": ["chicken", "chicken breast", "chicken thighs", "chicken wings",
            "chicken fillets", "chicken pieces", "chicken stock", "chicken soup"],
    "ric": ["rice", "basmati rice", "brown rice", "jasmine rice", "rice flour",
            "rice cakes", "rice milk", "rice pudding"],
    "pas": ["pasta", "pasta spaghetti", "pasta penne", "pasta fusilli", "pasta sauce",
            "pasta machine", "pasta salad", "pasta bake"],
}
_DEFAULT_SUGGESTIONS = ["milk", "bread", "eggs", "chicken", "rice", "pasta", "tomatoes",
                        "potatoes"]

_PRODUCTS: list[dict[str, Any]] = [
    {"id": 1, "name": "Fresh Full Cream Milk 2L", "price": "R 25.99", "onSpecial": True,
     "originalPrice": "R 29.99", "image": "placeholder", "imageHint": "milk carton"},
    {"id": 2, "name": "Brown Bread 700g", "price": "R 18.50", "onSpecial": False,
     "image": "placeholder", "imageHint": "bread loaf"},
    {"id": 3, "name": "Free Range Eggs Large 12pk", "price": "R 45.00", "onSpecial": True,
     "originalPrice": "R 52.00", "image": "placeholder", "imageHint": "eggs"},
    {"id": 4, "name": "Chicken Breast Fillets 1kg", "price": "R 89.99", "onSpecial": False,
     "image": "placeholder", "imageHint": "chicken breast"},
    {"id": 5, "name": "Long Grain Rice 2kg", "price": "R 42.50", "onSpecial": True,
     "originalPrice": "R 49.99", "image": "placeholder", "imageHint": "rice"},
    {"id": 6, "name": "Pasta Spaghetti 500g", "price": "R 16.99", "onSpecial": False,
     "image": "placeholder", "imageHint": "pasta"},
    {"id": 7, "name": "Fresh Tomatoes 1kg", "price": "R 24.99", "onSpecial": True,
     "originalPrice": "R 29.99", "image": "placeholder", "imageHint": "tomatoes"},
    {"id": 8, "name": "Potatoes 2.5kg", "price": "R 35.00", "onSpecial": False,
     "image": "placeholder", "imageHint": "potatoes"},
    {"id": 9, "name": "Cheddar Cheese 500g", "price": "R 67.99", "onSpecial": False,
     "image": "placeholder", "imageHint": "cheese"},
    {"id": 10, "name": "Orange Juice 2L", "price": "R 32.50", "onSpecial": True,
     "originalPrice": "R 38.00", "image": "placeholder", "imageHint": "orange juice"},
]

_STORES: list[dict[str, Any]] = [
    {
        "name": "Checkers",
        "distance": "1.2 km",
        "totalPrice": 245.50,
        "priceBreakdown": [
            {"item": "milk", "price": 25.99},
            {"item": "bread", "price": 18.50},
            {"item": "eggs", "price": 45.00},
            {"item": "chicken", "price": 156.00},
        ],
        "isCheapest": True,
    },
    {
        "name": "Pick n Pay",
        "distance": "2.1 km",
        "totalPrice": 268.75,
        "priceBreakdown": [
            {"item": "milk", "price": 28.50},
            {"item": "bread", "price": 20.00},
            {"item": "eggs", "price": 48.25},
            {"item": "chicken", "price": 172.00},
        ],
        "isCheapest": False,
    },
    {
        "name": "Shoprite",
        "distance": "0.8 km",
        "totalPrice": 238.90,
        "priceBreakdown": [
            {"item": "milk", "price": 24.99},
            {"item": "bread", "price": 17.50},
            {"item": "eggs", "price": 42.00},
            {"item": "chicken", "price": 154.40},
        ],
        "isCheapest": True,
    },
]

# (title, store, hint, category, type, discount%, days valid)
_PROMOTIONS: list[tuple[str, str, str, str, str, int | None, int]] = [
    ("25% Off Fresh Dairy Products", "Checkers", "milk carton", "Dairy",
     "percentage_discount", 25, 7),
    ("Weekly Meat Special - 30% Off", "Shoprite", "chicken breast", "Meat",
     "percentage_discount", 30, 5),
    ("Bakery Sale - Buy 1 Get 1 Free", "Pick n Pay", "fresh bread", "Bakery",
     "multibuy", None, 3),
    ("Fresh Produce Special - 15% Off", "Spar", "fresh apples", "Produce",
     "percentage_discount", 15, 4),
    ("Household Essentials Discount", "Woolworths", "laundry detergent", "Household",
     "price_drop", 20, 6),
]


def _suggestions(user_prompt: str) -> dict[str, Any]:
    match = _QUERY_RE.search(user_prompt)
    query = match.group(1).lower() if match else ""
    for prefix, suggestions in _SUGGESTIONS_BY_PREFIX.items():
        if prefix in query:
            return {"suggestions": suggestions}
    return {"suggestions": _DEFAULT_SUGGESTIONS}


def _promotions(today: date) -> dict[str, Any]:
    promotions = []
    for title, store, hint, category, promo_type, discount, days in _PROMOTIONS:
        promo: dict[str, Any] = {
            "title": title,
            "store": store,
            "image": "image_to_be_generated",
            "imageHint": hint,
            "category": category,
            "promotionType": promo_type,
            "validUntil": (today + timedelta(days=days)).isoformat(),
        }
        if discount is not None:
            promo["discountPercent"] = discount
        promotions.append(promo)
    return {"promotions": promotions}


def synthetic_payload(user_prompt: str, today: date | None = None) -> dict[str, Any]:
    """Canned JSON payload for the domain the prompt asks about."""
    if "suggest" in user_prompt or "completions" in user_prompt:
        return _suggestions(user_prompt)
    if "price estimates" in user_prompt:
        return {"stores": _STORES}
    if "promotions" in user_prompt:
        return _promotions(today or date.today())
    if _STORE_RE.search(user_prompt):
        return {"products": _PRODUCTS}
    return {
        "result": "Mock AI response",
        "message": "This is fallback mock data",
        "prompt": user_prompt[:100],
    }


class SyntheticProvider:
    """Always-available last resort; never raises."""

    name = "synthetic"

    def is_configured(self) -> bool:
        return True

    async def generate(self, prompt: PromptSpec) -> str:
        return json.dumps(synthetic_payload(prompt.user_prompt))
