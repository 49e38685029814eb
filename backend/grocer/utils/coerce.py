"""Total accessors for untyped model JSON.

Every helper takes whatever the model produced and returns a value of the
requested type or the supplied default; none of them raise.
"""

from __future__ import annotations

import math
from typing import Any


def capitalize_first(text: str) -> str:
    """Uppercase the first character only ("milk powder" -> "Milk powder")."""
    return text[:1].upper() + text[1:]


def clean_str(value: Any) -> str | None:
    """Trimmed string, or None for non-strings and blank strings."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def str_or(value: Any, default: str) -> str:
    cleaned = clean_str(value)
    return cleaned if cleaned is not None else default


def as_number(value: Any) -> float | None:
    """Finite int/float (bools excluded), or numeric strings like "24.99" / "R 24.99"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().lstrip("R").strip().replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def as_positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def dict_list(payload: Any, field: str) -> list[Any]:
    """``payload[field]`` when payload is an object holding a list there, else []."""
    if not isinstance(payload, dict):
        return []
    items = payload.get(field)
    return items if isinstance(items, list) else []
