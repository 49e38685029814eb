"""Prompt template loading.

Templates live in ``grocer/prompts/<name>.txt`` and are filled with
``str.format`` (literal JSON braces in templates are doubled). Files are
read once per process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Return the raw template text for ``name`` (cached)."""
    path = PROMPTS_DIR / f"{name}.txt"
    if not path.exists():
        raise FileNotFoundError(f"No prompt template: {path}")
    return path.read_text()


def render_prompt(name: str, **values: object) -> str:
    return load_prompt(name).format(**values).strip()
