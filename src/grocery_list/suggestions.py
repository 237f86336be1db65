"""
Healthier-alternative suggestions from an OpenRouter chat-completion endpoint.

API Documentation: https://openrouter.ai/docs/api-reference/chat-completion
"""

import logging
from typing import Any

import httpx

from .config import SuggestionServiceConfig
from .errors import HttpStatusError, TransportError
from .models import FetchResult, Suggestion
from .parser import parse_suggestion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a nutrition expert that provides brief, helpful suggestions for "
    "healthier food alternatives. Format your response with the alternative on "
    "the first line and the explanation on the second line."
)

USER_PROMPT = (
    'Suggest a healthier grocery alternative for "{item_name}" and explain why '
    "it's healthier in one sentence."
)


def build_messages(item_name: str) -> list[dict[str, str]]:
    """Build the chat messages for one item."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": USER_PROMPT.format(item_name=item_name)},
    ]


def extract_content(data: Any) -> str | None:
    """
    Pull ``choices[0].message.content`` out of a completion response.

    Returns None when any part of the path is missing or has the wrong type.
    """
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class SuggestionClient:
    """
    Client for the suggestion service.

    Single-shot: one request per call, no retries, and the httpx default
    timeout.
    """

    def __init__(
        self,
        api_key: str | None = None,
        config: SuggestionServiceConfig | None = None,
    ):
        """
        Initialize the suggestion client.

        Args:
            api_key: OpenRouter API key (may also be passed per call)
            config: Service configuration
        """
        self.api_key = api_key
        self.config = config or SuggestionServiceConfig()

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": self.config.referer,
            "X-Title": self.config.title,
        }

    async def fetch_suggestion(
        self, item_name: str, api_key: str | None = None
    ) -> FetchResult[Suggestion]:
        """
        Ask for a healthier alternative to ``item_name``.

        Args:
            item_name: Grocery item to find an alternative for
            api_key: Overrides the key given at construction

        Returns:
            FetchResult holding a Suggestion, an empty result when the
            service produced nothing usable, or a FetchError
        """
        key = api_key or self.api_key or ""
        url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        body = {"model": self.config.model, "messages": build_messages(item_name)}

        logger.debug(f"Requesting suggestion for {item_name!r}")

        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(url, headers=self._headers(key), json=body)
            except httpx.HTTPError as e:
                logger.warning(f"Suggestion request for {item_name!r} failed: {e}")
                return FetchResult.failed(TransportError(str(e)))

        if not 200 <= response.status_code < 300:
            logger.warning(
                f"Suggestion request for {item_name!r} returned HTTP {response.status_code}"
            )
            return FetchResult.failed(HttpStatusError(response.status_code, service="suggestion"))

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Suggestion response for {item_name!r} was not JSON")
            return FetchResult.empty()

        content = extract_content(data)
        if content is None:
            logger.warning(f"Suggestion response for {item_name!r} had no message content")
            return FetchResult.empty()

        suggestion = parse_suggestion(content).to_suggestion()
        if suggestion is None:
            logger.info(f"No suggestion produced for {item_name!r}")
            return FetchResult.empty()

        logger.debug(f"Suggestion for {item_name!r}: {suggestion.alternative!r}")
        return FetchResult(value=suggestion)
