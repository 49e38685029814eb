"""Item-completion suggestions for a partially typed shopping list entry."""

from __future__ import annotations

from typing import Any

import structlog

from grocer.models.contracts import PromptSpec, SuggestItemCompletionsResponse
from grocer.providers.chain import ProviderChain
from grocer.utils.coerce import capitalize_first, dict_list
from grocer.utils.json_extract import extract_json
from grocer.utils.prompts import render_prompt

log = structlog.get_logger("grocer.suggestions")

MAX_SUGGESTIONS = 8
SYSTEM_INSTRUCTION = (
    "You are an autocomplete agent for a shopping list app in South Africa. "
    "Return ONLY valid JSON."
)


def build_prompt(query: str) -> PromptSpec:
    return PromptSpec(
        system_instruction=SYSTEM_INSTRUCTION,
        user_prompt=render_prompt("suggestions", query=query),
    )


def validate_suggestions(payload: Any) -> list[str]:
    """Trim, capitalize, de-duplicate (first occurrence wins) and cap at 8."""
    seen: set[str] = set()
    suggestions: list[str] = []
    for raw in dict_list(payload, "suggestions"):
        if not isinstance(raw, str) or not raw.strip():
            continue
        suggestion = capitalize_first(raw.strip())
        if suggestion in seen:
            continue
        seen.add(suggestion)
        suggestions.append(suggestion)
    return suggestions[:MAX_SUGGESTIONS]


async def suggest_item_completions(
    chain: ProviderChain, query: str
) -> SuggestItemCompletionsResponse:
    query = query.strip()
    if not query:
        return SuggestItemCompletionsResponse(suggestions=[])

    text = await chain.generate(build_prompt(query))
    suggestions = validate_suggestions(extract_json(text))
    log.info("suggestions_generated", query=query, count=len(suggestions))
    return SuggestItemCompletionsResponse(suggestions=suggestions)
