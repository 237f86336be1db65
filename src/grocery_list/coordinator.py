"""
Enrichment coordinator for grocery-list.

Sits between the fetch clients and the item store. For each item it checks
the credential gate, runs the suggestion and image fetches concurrently and
writes each outcome back as a patch. The two patches touch disjoint fields
(``suggestion*`` vs ``image*``), so whichever fetch finishes first cannot
clobber the other.

The coordinator keeps no item state. An item removed while its fetches are
in flight is handled by the store dropping the late patches. Image patches
carry the generation token from ``ItemStore.start_image``, so a lookup for a
name the item no longer has cannot overwrite the current one.
"""

import asyncio
import logging
from collections.abc import Callable

from .credentials import IMAGE_CREDENTIAL, SUGGESTION_CREDENTIAL, CredentialGate
from .errors import FetchError
from .images import ImageClient
from .models import FetchResult, Notice
from .store import ItemStore
from .suggestions import SuggestionClient

logger = logging.getLogger(__name__)

SUGGESTION_FAILED_NOTICE = Notice(
    title="Error",
    message="Failed to get health suggestion. Please try again.",
)

NoticeHandler = Callable[[Notice], None]


class EnrichmentCoordinator:
    """Dispatches enrichment fetches and merges their results into the store."""

    def __init__(
        self,
        store: ItemStore,
        gate: CredentialGate,
        suggestion_client: SuggestionClient | None = None,
        image_client: ImageClient | None = None,
        on_notice: NoticeHandler | None = None,
    ):
        self.store = store
        self.gate = gate
        self.suggestion_client = suggestion_client or SuggestionClient()
        self.image_client = image_client or ImageClient()
        self.on_notice = on_notice
        self._tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def enrich(self, item_id: str, name: str) -> None:
        """
        Fetch a suggestion and an image for one item.

        Without a suggestion credential nothing is fetched and the gate is
        asked to prompt for one. Without an image credential only the
        suggestion is fetched.
        """
        if not self.gate.has(SUGGESTION_CREDENTIAL):
            logger.info(f"No suggestion credential, skipping enrichment of {item_id}")
            self.gate.request(SUGGESTION_CREDENTIAL)
            return

        if item_id not in self.store:
            logger.debug(f"Item {item_id} is gone, nothing to enrich")
            return

        # Pending flags go up before the first suspension point
        self.store.patch(item_id, suggestion_pending=True)
        fetches = [self._suggestion_path(item_id, name, self.gate.get(SUGGESTION_CREDENTIAL))]

        started = self._start_image(item_id)
        if started:
            fetches.append(self._image_path(item_id, name, *started))

        await asyncio.gather(*fetches)

    async def refresh_image(self, item_id: str, name: str) -> None:
        """Fetch only the image for one item. Silent when no credential is set."""
        started = self._start_image(item_id)
        if started:
            await self._image_path(item_id, name, *started)

    async def accept_suggestion(self, item_id: str) -> str | None:
        """
        Accept an item's suggestion and look up an image for the new name.

        Returns the new name, or None when there was no suggestion.
        """
        new_name = self.store.accept_suggestion(item_id)
        if new_name is None:
            return None
        await self.refresh_image(item_id, new_name)
        return new_name

    async def add_item(self, name: str) -> str:
        """Add an item and enrich it. Returns the new item id."""
        item_id = self.store.add(name)
        item = self.store.get(item_id)
        await self.enrich(item_id, item.name)
        return item_id

    def dispatch(self, item_id: str, name: str) -> asyncio.Task:
        """Schedule ``enrich`` without waiting for it."""
        task = asyncio.create_task(self.enrich(item_id, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every dispatched enrichment has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -------------------------------------------------------------------------
    # Suggestion path
    # -------------------------------------------------------------------------

    async def _suggestion_path(self, item_id: str, name: str, api_key: str | None) -> None:
        try:
            result = await self.suggestion_client.fetch_suggestion(name, api_key=api_key)
        except Exception as e:
            logger.exception(f"Unexpected error fetching suggestion for {item_id}")
            result = FetchResult.failed(FetchError(str(e)))

        if result.ok:
            self.store.patch(
                item_id,
                suggestion=result.value,
                suggestion_visible=result.value is not None,
                suggestion_pending=False,
            )
            return

        logger.warning(f"Suggestion fetch failed for {item_id}: {result.error}")
        self.store.patch(item_id, suggestion_pending=False)
        self._emit(SUGGESTION_FAILED_NOTICE)

    # -------------------------------------------------------------------------
    # Image path
    # -------------------------------------------------------------------------

    def _start_image(self, item_id: str) -> tuple[str, int] | None:
        """Mark the image as pending and return (key, generation), or None to skip."""
        image_key = self.gate.get(IMAGE_CREDENTIAL)
        if not image_key:
            logger.debug(f"No image credential, skipping image for {item_id}")
            return None
        generation = self.store.start_image(item_id)
        if generation is None:
            return None
        return image_key, generation

    async def _image_path(self, item_id: str, name: str, api_key: str, generation: int) -> None:
        try:
            result = await self.image_client.fetch_image(name, api_key=api_key)
        except Exception as e:
            logger.exception(f"Unexpected error fetching image for {item_id}")
            result = FetchResult.failed(FetchError(str(e)))

        if result.ok:
            self.store.patch(item_id, image_generation=generation, image=result.value, image_pending=False)
        else:
            # Image failures stay silent
            logger.debug(f"Image fetch failed for {item_id}: {result.error}")
            self.store.patch(item_id, image_generation=generation, image_pending=False)

    def _emit(self, notice: Notice) -> None:
        if self.on_notice is None:
            logger.warning(f"{notice.title}: {notice.message}")
            return
        try:
            self.on_notice(notice)
        except Exception:
            logger.exception("Notice handler failed")
