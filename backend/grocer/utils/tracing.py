"""Optional LangSmith tracing for provider SDK clients.

Off unless LANGSMITH_API_KEY is set. When the key is set but the ``tracing``
extra is not installed, or wrapping fails, clients are returned unwrapped and
a warning is logged; tracing never blocks text generation.
"""

from __future__ import annotations

import importlib
import os
from collections.abc import Callable
from typing import Any

import structlog

_log = structlog.get_logger("grocer.tracing")

_WRAPPERS = {
    "anthropic": "wrap_anthropic",
    "gemini": "wrap_gemini",
}


def tracing_enabled() -> bool:
    return bool(os.environ.get("LANGSMITH_API_KEY", "").strip())


def _langsmith_attr(module: str, attr: str) -> Callable[..., Any] | None:
    try:
        return getattr(importlib.import_module(module), attr)  # type: ignore[no-any-return]
    except (ImportError, AttributeError):
        _log.warning(
            "langsmith_not_installed",
            reason="LANGSMITH_API_KEY is set but langsmith is not importable; "
            "install the 'tracing' extra",
        )
        return None


def wrap_client(client: Any, kind: str) -> Any:
    """Wrap an SDK client (``kind`` is ``anthropic`` or ``gemini``) for tracing."""
    if not tracing_enabled():
        return client
    wrap = _langsmith_attr("langsmith.wrappers", _WRAPPERS[kind])
    if wrap is None:
        return client
    try:
        return wrap(client)
    except Exception as exc:
        _log.error(
            "langsmith_wrap_failed",
            client_kind=kind,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return client


def traceable(**kwargs: Any) -> Callable[[Any], Any]:
    """Decorator that traces a function run; identity when tracing is off."""

    def _identity(fn: Any) -> Any:
        return fn

    if not tracing_enabled():
        return _identity
    decorator_factory = _langsmith_attr("langsmith", "traceable")
    if decorator_factory is None:
        return _identity
    try:
        return decorator_factory(**kwargs)  # type: ignore[no-any-return]
    except Exception as exc:
        _log.error(
            "langsmith_traceable_failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _identity
