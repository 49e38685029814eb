"""Free-text shopping list import.

The model is asked for a JSON array of items. When no list can be recovered
from its reply, a rule-based line splitter produces the items instead, so an
import always yields something reviewable.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from grocer.models.contracts import ImportedItem, ImportListResponse, PromptSpec
from grocer.providers.chain import ProviderChain
from grocer.utils.coerce import capitalize_first
from grocer.utils.json_extract import extract_json
from grocer.utils.prompts import load_prompt, render_prompt

log = structlog.get_logger("grocer.import_list")

FALLBACK_CONFIDENCE = 0.3
FALLBACK_SUGGESTION = "Used basic parsing - review items carefully"
LONG_LIST_THRESHOLD = 15
MANY_CATEGORIES_THRESHOLD = 5

_SPLIT_RE = re.compile(r"[\n,;]+")
_BULLET_RE = re.compile(r"^(?:[-•*]+|\d+[.)])\s*")
_QUANTITY_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(kg|g|ml|l|pack|pcs?|liters?|ounces?|lbs?)\b", re.IGNORECASE
)

# First matching group wins; "ice cream" is dairy because "cream" comes first
_CATEGORY_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("produce", re.compile(r"apple|banana|orange|vegetable|fruit|lettuce|tomato|avocado|berry")),
    ("dairy", re.compile(r"milk|cheese|yogurt|butter|cream|egg")),
    ("pantry", re.compile(r"bread|pasta|rice|cereal|flour|mealie|meal")),
    ("beverages", re.compile(r"coke|pepsi|juice|water|soda|beer|wine|coffee|tea")),
    ("meat", re.compile(r"chicken|beef|pork|fish|meat|steak|wors|boerewors")),
    ("frozen", re.compile(r"frozen|ice cream")),
    ("household", re.compile(r"soap|detergent|cleaner|tissue|toilet paper")),
]

_TIPS = {
    "long_list": "💡 Your list is quite long! Consider splitting into multiple shopping trips.",
    "many_categories": (
        "🛒 You have items from multiple categories. Shop by store section to save time!"
    ),
    "frozen_last": "❄️ Remember to get frozen items last to keep them cold!",
}


def build_prompt(text: str) -> PromptSpec:
    return PromptSpec(
        system_instruction=load_prompt("import_list_system").strip(),
        user_prompt=render_prompt("import_list", text=text),
    )


def categorize_item(name: str) -> str:
    lowered = name.lower()
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(lowered):
            return category
    return "other"


def extract_quantity(text: str) -> str:
    match = _QUANTITY_RE.search(text)
    return match.group(0) if match else ""


def clean_item(item: Any) -> ImportedItem | None:
    """Normalize one model-produced item; None when it has no usable name."""
    if isinstance(item, str):
        name = item.strip()
        if not name:
            return None
        return ImportedItem(name=capitalize_first(name), category=categorize_item(name))

    if not isinstance(item, dict):
        return None

    raw_name = item.get("name")
    name = str(raw_name).strip() if raw_name is not None else ""
    if not name:
        return None
    raw_quantity = item.get("quantity")
    raw_category = item.get("category")
    category = (
        raw_category.strip().lower()
        if isinstance(raw_category, str) and raw_category.strip()
        else categorize_item(name)
    )
    return ImportedItem(
        name=capitalize_first(name),
        quantity=str(raw_quantity).strip() if raw_quantity is not None else "",
        category=category,
    )


def fallback_parse(text: str) -> list[ImportedItem]:
    """Split on newlines/commas/semicolons and classify each line by keyword."""
    items: list[ImportedItem] = []
    for line in _SPLIT_RE.split(text):
        stripped = line.strip()
        if not stripped:
            continue
        name = _BULLET_RE.sub("", stripped).strip()
        if len(name) <= 1:
            continue
        items.append(
            ImportedItem(
                name=capitalize_first(name),
                quantity=extract_quantity(stripped),
                category=categorize_item(name),
            )
        )
    return items


def calculate_confidence(items: list[ImportedItem], original_text: str) -> float:
    if not items:
        return 0.0
    word_count = len(original_text.split()) or 1
    ratio = len(items) / word_count
    if ratio >= 0.7:
        return 0.9
    if ratio >= 0.4:
        return 0.7
    if ratio >= 0.2:
        return 0.5
    return 0.3


def generate_suggestions(items: list[ImportedItem]) -> list[str]:
    suggestions: list[str] = []
    if len(items) > LONG_LIST_THRESHOLD:
        suggestions.append(_TIPS["long_list"])

    categories = {item.category for item in items if item.category}
    if len(categories) > MANY_CATEGORIES_THRESHOLD:
        suggestions.append(_TIPS["many_categories"])

    if "produce" in categories and "frozen" in categories:
        suggestions.append(_TIPS["frozen_last"])
    return suggestions


def _model_items(payload: Any) -> list[Any] | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return payload["items"]
    return None


async def _parse(chain: ProviderChain, text: str) -> ImportListResponse:
    reply = await chain.generate(build_prompt(text))
    raw_items = _model_items(extract_json(reply, array_field="items", bare_list=True))

    if raw_items is None:
        log.info("import_list_rule_based", reason="no list in model reply")
        items = fallback_parse(text)
    else:
        items = [cleaned for cleaned in map(clean_item, raw_items) if cleaned is not None]

    return ImportListResponse(
        items=items,
        confidence=calculate_confidence(items, text),
        original_text=text,
        parsed_count=len(items),
        suggestions=generate_suggestions(items),
    )


async def import_list(chain: ProviderChain, text: str) -> ImportListResponse:
    try:
        response = await _parse(chain, text)
    except Exception as exc:
        log.error(
            "import_list_failed",
            error_type=type(exc).__name__,
            error=str(exc),
            exc_info=True,
        )
        items = fallback_parse(text)
        response = ImportListResponse(
            items=items,
            confidence=FALLBACK_CONFIDENCE,
            original_text=text,
            parsed_count=len(items),
            suggestions=[FALLBACK_SUGGESTION],
        )

    log.info(
        "import_list_parsed",
        items=response.parsed_count,
        confidence=response.confidence,
    )
    return response
