"""
Representative item images from the Pexels search API.

API Documentation: https://www.pexels.com/api/documentation/#photos-search
"""

import logging
from typing import Any

import httpx

from .config import ImageServiceConfig
from .errors import HttpStatusError, TransportError
from .models import FetchResult

logger = logging.getLogger(__name__)

# Only the first photo is ever used
PER_PAGE = 1


class ImageClient:
    """
    Client for the image search service.

    Single-shot like the suggestion client: one request, no retries.
    """

    def __init__(
        self,
        api_key: str | None = None,
        config: ImageServiceConfig | None = None,
    ):
        self.api_key = api_key
        self.config = config or ImageServiceConfig()

    def build_query(self, item_name: str) -> str:
        """Item name plus the qualifying term, e.g. "apples food"."""
        if not self.config.query_suffix:
            return item_name
        return f"{item_name} {self.config.query_suffix}"

    def _parse_image_url(self, data: Any) -> str | None:
        """Return ``photos[0].src.<size>`` or None."""
        if not isinstance(data, dict):
            return None
        photos = data.get("photos")
        if not isinstance(photos, list) or not photos:
            return None
        first = photos[0]
        if not isinstance(first, dict):
            return None
        src = first.get("src")
        if not isinstance(src, dict):
            return None
        url = src.get(self.config.image_size)
        return url if isinstance(url, str) and url else None

    async def fetch_image(self, item_name: str, api_key: str | None = None) -> FetchResult[str]:
        """
        Look up one representative image for ``item_name``.

        Returns:
            FetchResult holding the image URL, an empty result when the
            search found nothing, or a FetchError
        """
        key = api_key or self.api_key or ""
        url = f"{self.config.base_url.rstrip('/')}/search"
        params = {"query": self.build_query(item_name), "per_page": PER_PAGE}

        logger.debug(f"Searching images: {params['query']!r}")

        async with httpx.AsyncClient() as client:
            try:
                # Pexels takes the raw key, no "Bearer" prefix
                response = await client.get(url, params=params, headers={"Authorization": key})
            except httpx.HTTPError as e:
                logger.warning(f"Image search for {item_name!r} failed: {e}")
                return FetchResult.failed(TransportError(str(e)))

        if not 200 <= response.status_code < 300:
            logger.warning(f"Image search for {item_name!r} returned HTTP {response.status_code}")
            return FetchResult.failed(HttpStatusError(response.status_code, service="image"))

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Image search response for {item_name!r} was not JSON")
            return FetchResult.empty()

        image_url = self._parse_image_url(data)
        if image_url is None:
            logger.debug(f"No image found for {item_name!r}")
            return FetchResult.empty()

        return FetchResult(value=image_url)
