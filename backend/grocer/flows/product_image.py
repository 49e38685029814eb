"""Product image lookup: memo cache → Pexels search → keyword table.

Never fails. Pexels is only called when PEXELS_API_KEY is configured; any
Pexels failure (status, transport, no photos) falls through to the keyword
resolver. Whatever URL is chosen is memoized for the process lifetime.
"""

from __future__ import annotations

import re

import httpx
import structlog

from grocer.models.contracts import GenerateProductImageResponse
from grocer.utils.image_keywords import resolve_image_url
from grocer.utils.ttl_cache import TTLCache

log = structlog.get_logger("grocer.images")

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
DEFAULT_SIZE = 400
PEXELS_TIMEOUT = 15.0

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9 ]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_hint(hint: str) -> str:
    """Cache key form of a hint: lower-case, whitespace runs → ``-``."""
    return _WHITESPACE_RE.sub("-", hint.strip().lower())


def pexels_query(hint: str) -> str:
    cleaned = _WHITESPACE_RE.sub(" ", _NON_ALNUM_RE.sub("", hint.lower())).strip()
    return f"{cleaned} product grocery shopping"


class ImageService:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        pexels_api_key: str = "",
        cache: TTLCache[str] | None = None,
    ) -> None:
        self._http = http_client
        self._pexels_api_key = pexels_api_key
        self.cache: TTLCache[str] = cache or TTLCache("product_images", ttl_seconds=None)

    async def _search_pexels(self, hint: str) -> str | None:
        """Return the first square photo's medium URL, or None on any failure."""
        query = pexels_query(hint)
        try:
            resp = await self._http.get(
                PEXELS_SEARCH_URL,
                params={"query": query, "per_page": 1, "orientation": "square"},
                headers={"Authorization": self._pexels_api_key},
                timeout=PEXELS_TIMEOUT,
            )
        except httpx.TimeoutException:
            log.warning("pexels_search_timeout", query=query)
            return None
        except httpx.RequestError as exc:
            log.warning("pexels_search_error", query=query, error_type=type(exc).__name__)
            return None

        if resp.status_code != 200:
            log.warning("pexels_search_failed", status=resp.status_code, query=query)
            return None

        try:
            url = resp.json()["photos"][0]["src"]["medium"]
        except (ValueError, KeyError, IndexError, TypeError):
            log.info("pexels_search_no_photos", query=query)
            return None
        return url if isinstance(url, str) and url else None

    async def image_for(
        self,
        hint: str,
        title: str | None = None,
        category: str | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> str:
        """Image URL for a product hint; title/category refine the keyword fallback."""
        width = width or DEFAULT_SIZE
        height = height or DEFAULT_SIZE
        key = TTLCache.make_key(
            normalize_hint(hint),
            normalize_hint(title or ""),
            normalize_hint(category or ""),
            f"{width}x{height}",
        )

        cached = self.cache.get(key)
        if cached is not None:
            log.debug("image_cache_hit", hint=hint)
            return cached

        url = None
        if self._pexels_api_key:
            url = await self._search_pexels(hint)
        if url is None:
            url = resolve_image_url(title or hint, hint, category, width=width, height=height)
            log.info("image_keyword_fallback", hint=hint, url=url)

        self.cache.set(key, url)
        return url


async def generate_product_image(
    images: ImageService,
    hint: str,
    width: int | None = None,
    height: int | None = None,
) -> GenerateProductImageResponse:
    image_url = await images.image_for(hint.strip(), width=width, height=height)
    return GenerateProductImageResponse(image_url=image_url)
