"""Grocer API contract models.

Field names are snake_case in Python and camelCase on the wire (the web
client was written against camelCase JSON). Responses are serialized by
alias with ``None`` fields omitted, so optional prices and discounts simply
disappear when the model did not provide them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Contract(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === Prompting ===


@dataclass(frozen=True)
class PromptSpec:
    """System instruction plus user prompt sent to a text provider."""

    system_instruction: str
    user_prompt: str


# === Suggestions ===


class SuggestItemCompletionsRequest(_Contract):
    query: str = Field(min_length=1)


class SuggestItemCompletionsResponse(_Contract):
    suggestions: list[str] = Field(default_factory=list, max_length=8)


# === Store products ===


class Product(_Contract):
    id: int = Field(ge=1)
    name: str = Field(min_length=1)
    price: str
    on_special: bool = False
    original_price: str | None = None
    image: str
    image_hint: str


class GetStoreProductsRequest(_Contract):
    store_name: str = Field(min_length=1)
    existing_products: list[str] = Field(default_factory=list)


class GetStoreProductsResponse(_Contract):
    products: list[Product] = Field(default_factory=list, max_length=10)


# === Promotions ===

PromotionType = Literal["percentage_discount", "multibuy", "price_drop", "bundle"]


class Promotion(_Contract):
    title: str
    store: str
    image: str
    image_hint: str
    category: str
    promotion_type: PromotionType = "percentage_discount"
    discount_percent: float | None = Field(default=None, ge=0, le=100)
    savings_amount: str | None = None
    original_price: str | None = None
    current_price: str | None = None
    valid_until: str  # YYYY-MM-DD


class GetCurrentPromotionsResponse(_Contract):
    promotions: list[Promotion] = Field(default_factory=list)


# === Price estimates ===


class PriceBreakdownItem(_Contract):
    item: str
    price: float = Field(ge=0)


class StoreEstimate(_Contract):
    name: str
    distance: str
    price_breakdown: list[PriceBreakdownItem] = Field(default_factory=list)
    total_price: float = 0.0  # derived from price_breakdown
    is_cheapest: bool = False  # derived across the store list


class GetPriceEstimatesRequest(_Contract):
    shopping_list: list[str]
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class GetPriceEstimatesResponse(_Contract):
    stores: list[StoreEstimate] = Field(default_factory=list)


# === Product image ===


class GenerateProductImageRequest(BaseModel):
    # Wire name predates the camelCase convention; kept for client compatibility
    model_config = ConfigDict(populate_by_name=True)

    data_ai_hint: str = Field(alias="dataAiHint", min_length=1)
    width: int | None = Field(default=None, ge=1, le=4000)
    height: int | None = Field(default=None, ge=1, le=4000)


class GenerateProductImageResponse(_Contract):
    image_url: str


# === List import ===

class ImportedItem(_Contract):
    name: str
    quantity: str = ""
    category: str = "other"


class ImportListRequest(_Contract):
    text: str = Field(min_length=1, max_length=10000)


class ImportListResponse(_Contract):
    items: list[ImportedItem] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=1)
    original_text: str
    parsed_count: int = Field(ge=0)
    suggestions: list[str] = Field(default_factory=list)


# === Errors ===


class ErrorDetail(BaseModel):
    loc: list[str | int]
    msg: str
    type: str


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: list[ErrorDetail] | None = None
    retryable: bool = False
