"""Featured image lookup: Unsplash search with category fallbacks.

Every failure path resolves to a category default image; nothing here raises
to the caller.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from automation.settings import AutomationSettings
from automation.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_FALLBACK_IMAGE = "https://images.unsplash.com/photo-1516414447565-b14be0adf13e?w=800&h=400&fit=crop"
DISPLAY_PARAMS = "w=800&h=400&fit=crop"
RESULTS_PER_PAGE = 5


class ImageSearchError(Exception):
    """Unusable response from the image search service."""


def build_image_url(photo: Mapping[str, Any]) -> str:
    """Highest-fidelity variant of ``photo`` sized for the article header."""
    urls = photo.get("urls") or {}
    base = urls.get("raw") or urls.get("regular")
    if not base:
        raise ImageSearchError("photo has no raw or regular url")
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{DISPLAY_PARAMS}"


class ImageResolver:
    def __init__(self, settings: AutomationSettings, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._http_client = http_client

    def category_default_image(self, category: str) -> str:
        image = self.settings.default_images.get(category)
        if image:
            return image
        logger.warning("image.no_category_default", extra={"category": category})
        return GENERIC_FALLBACK_IMAGE

    async def get_image_for_article(self, search_terms: Optional[Sequence[str]], category: str) -> str:
        if not search_terms:
            logger.info("image.no_search_terms", extra={"category": category})
            return self.category_default_image(category)
        try:
            return await self.search(search_terms, category)
        except Exception:
            logger.exception("image.lookup_failed", extra={"category": category})
            return self.category_default_image(category)

    async def search(self, search_terms: Sequence[str], category: str) -> str:
        key = self.settings.unsplash_access_key
        if not self.settings.unsplash_enabled or key is None:
            logger.info("image.search_skipped", extra={"enabled": self.settings.unsplash_enabled})
            return self.category_default_image(category)

        query = " ".join(search_terms)
        logger.info("image.search", extra={"query": query})
        try:
            results = await self._fetch_results(query, key.get_secret_value())
            if not results:
                logger.warning("image.no_results", extra={"query": query})
                return self.category_default_image(category)
            photo = results[0]
            url = build_image_url(photo)
        except (httpx.HTTPError, ImageSearchError, ValueError) as exc:
            logger.error("image.search_failed", extra={"query": query, "error": str(exc)})
            return self.category_default_image(category)

        user = photo.get("user")
        photographer = user.get("name") if isinstance(user, dict) else None
        logger.info("image.found", extra={"photo_id": photo.get("id"), "photographer": photographer})
        return url

    async def _fetch_results(self, query: str, access_key: str) -> List[Dict[str, Any]]:
        params = {"query": query, "orientation": "landscape", "per_page": RESULTS_PER_PAGE}
        headers = {"Authorization": f"Client-ID {access_key}"}
        timeout = float(self.settings.image_request_timeout_seconds)
        if self._http_client is not None:
            resp = await self._http_client.get(
                self.settings.unsplash_endpoint, params=params, headers=headers, timeout=timeout
            )
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.get(self.settings.unsplash_endpoint, params=params, headers=headers)

        if resp.status_code >= 400:
            raise ImageSearchError(f"Unsplash API error: {resp.status_code}")
        data = resp.json()
        results = data.get("results") if isinstance(data, dict) else None
        if results is None:
            return []
        if not isinstance(results, list):
            raise ImageSearchError("Unsplash response results is not a list")
        return results
