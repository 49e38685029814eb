"""Recover JSON from free-form model replies.

Models wrap JSON in markdown fences, add a sentence before or after it, or
stop mid-array when they hit their token limit. ``extract_json`` tries, in
order:

1. Strip code fences and parse the whole reply.
2. Parse the greedy span from the first opening bracket to the last closing
   one, then the first balanced span (prose may contain stray braces).
3. When the caller names an array field, rebuild ``{field: [...]}`` from the
   complete elements of that array, dropping a cut-off trailing element.

Returns ``None`` when nothing is recoverable. Callers decide whether that
means "no results" or an error.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

log = structlog.get_logger("grocer.json_extract")

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?")
_PAIRS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove markdown fence markers anywhere in the text and trim whitespace."""
    return _FENCE_RE.sub("", text).strip()


def _loads(candidate: str) -> Any | None:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def _greedy_span(text: str, opener: str) -> str | None:
    """First ``opener`` through the last matching closer, or None."""
    start = text.find(opener)
    end = text.rfind(_PAIRS[opener])
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _balanced_span(text: str, opener: str) -> str | None:
    """First ``opener`` through its balanced closer, honouring JSON strings."""
    start = text.find(opener)
    if start == -1:
        return None
    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
            continue
        if in_string:
            if ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _complete_array_prefix(text: str, start: int) -> str | None:
    """Return ``[...]`` holding only the complete elements of the array at ``start``.

    ``text[start]`` must be ``[``. If the array closes normally the whole
    array is returned; if the text ends first, the array is cut after the last
    element that finished before the truncation point.
    """
    depth = 0
    in_string = False
    escape_next = False
    last_complete: int | None = None
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
            continue
        if in_string:
            if ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
                if depth == 1:
                    last_complete = i + 1
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
            if depth == 1:
                last_complete = i + 1
        elif ch == "," and depth == 1:
            last_complete = i
    if last_complete is None:
        return None
    return text[start:last_complete].rstrip().rstrip(",") + "]"


def recover_truncated_array(text: str, field: str) -> dict[str, list[Any]] | None:
    """Salvage ``{field: [...]}`` from a reply cut off inside that array."""
    match = re.search(rf'"{re.escape(field)}"\s*:\s*\[', text)
    if match is None:
        return None
    prefix = _complete_array_prefix(text, match.end() - 1)
    if prefix is None:
        return None
    items = _loads(prefix)
    if not isinstance(items, list):
        return None
    return {field: items}


def extract_json(
    text: str | None,
    *,
    array_field: str | None = None,
    bare_list: bool = False,
) -> Any | None:
    """Best-effort parse of a model reply.

    Args:
        text: Raw provider output.
        array_field: Name of the single array field the target shape holds
            (e.g. ``"promotions"``); enables truncated-array recovery.
        bare_list: The target shape is a top-level JSON array.

    Returns:
        The parsed value, or None if every strategy failed.
    """
    if not text or not text.strip():
        return None

    cleaned = strip_code_fences(text)

    parsed = _loads(cleaned)
    if parsed is not None:
        return parsed

    openers = ("[", "{") if bare_list else ("{",)
    for opener in openers:
        for span in (_greedy_span(cleaned, opener), _balanced_span(cleaned, opener)):
            if span is None:
                continue
            parsed = _loads(span)
            if parsed is not None:
                return parsed

    if array_field:
        recovered = recover_truncated_array(cleaned, array_field)
        if recovered is not None:
            log.info(
                "json_truncated_array_recovered",
                field=array_field,
                count=len(recovered[array_field]),
            )
            return recovered

    log.warning("json_unrecoverable", raw=text)
    return None
