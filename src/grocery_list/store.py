"""
In-memory item store for grocery-list.

The store is the only place item state changes. Every operation is a
single synchronous transition, so under asyncio no other task can observe
a half-applied change. Enrichment results arrive as id-addressed patches
that merge field by field; a patch for an item that no longer exists is
dropped.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from .models import PATCHABLE_FIELDS, Item

logger = logging.getLogger(__name__)

Listener = Callable[[list[Item]], None]


class ItemStore:
    """Ordered collection of grocery items."""

    def __init__(self):
        self._items: dict[str, Item] = {}  # insertion ordered
        self._editing_id: str | None = None
        self._issued_ids: set[str] = set()
        self._listeners: list[Listener] = []
        # Bumped whenever an item's image lookup is superseded
        self._image_generations: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def editing_id(self) -> str | None:
        """Id of the item being edited, if any."""
        return self._editing_id

    def get(self, item_id: str) -> Item | None:
        """Snapshot of one item, or None."""
        record = self._items.get(item_id)
        if record is None:
            return None
        return self._snapshot(record)

    def items(self) -> list[Item]:
        """Snapshots of all items in insertion order."""
        return [self._snapshot(record) for record in self._items.values()]

    def ids(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def _snapshot(self, record: Item) -> Item:
        return replace(record, editing=record.id == self._editing_id)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener`` with a snapshot after every change.

        Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.items()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Item store listener failed")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _new_id(self) -> str:
        while True:
            item_id = secrets.token_hex(8)
            if item_id not in self._issued_ids:
                self._issued_ids.add(item_id)
                return item_id

    def add(self, name: str) -> str:
        """
        Append a new item and return its id.

        Enrichment is not started here; callers dispatch it afterwards.
        """
        clean_name = name.strip()
        if not clean_name:
            raise ValueError("Item name must not be blank")

        item_id = self._new_id()
        self._items[item_id] = Item(id=item_id, name=clean_name)
        logger.debug(f"Added item {item_id}: {clean_name!r}")
        self._notify()
        return item_id

    def remove(self, item_id: str) -> bool:
        """Delete an item. Returns False if it was already gone."""
        if self._items.pop(item_id, None) is None:
            return False
        self._image_generations.pop(item_id, None)
        if self._editing_id == item_id:
            self._editing_id = None
        logger.debug(f"Removed item {item_id}")
        self._notify()
        return True

    def begin_edit(self, item_id: str) -> bool:
        """Make ``item_id`` the single item being edited."""
        if item_id not in self._items:
            return False
        self._editing_id = item_id
        self._notify()
        return True

    def commit_edit(self, item_id: str, new_name: str) -> bool:
        """
        Rename an item and end editing.

        A blank name leaves the edit open and changes nothing.
        """
        record = self._items.get(item_id)
        clean_name = new_name.strip()
        if record is None or not clean_name:
            return False

        record.name = clean_name
        if self._editing_id == item_id:
            self._editing_id = None
        self._notify()
        return True

    def cancel_edit(self) -> bool:
        """End editing without renaming anything."""
        if self._editing_id is None:
            return False
        self._editing_id = None
        self._notify()
        return True

    def start_image(self, item_id: str) -> int | None:
        """
        Begin a new image lookup for an item.

        Sets ``image_pending`` and returns a generation token that the
        lookup passes back to ``patch``. Returns None if the item is gone.
        """
        record = self._items.get(item_id)
        if record is None:
            return None
        generation = self._bump_image_generation(item_id)
        record.image_pending = True
        self._notify()
        return generation

    def _bump_image_generation(self, item_id: str) -> int:
        generation = self._image_generations.get(item_id, 0) + 1
        self._image_generations[item_id] = generation
        return generation

    def patch(self, item_id: str, image_generation: int | None = None, **fields: Any) -> bool:
        """
        Merge enrichment fields into one item.

        Only the given fields change. Returns False (and changes nothing)
        when the item no longer exists, or when ``image_generation`` belongs
        to an image lookup that has since been superseded.
        """
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch fields: {', '.join(sorted(unknown))}")

        record = self._items.get(item_id)
        if record is None:
            logger.debug(f"Dropping patch for missing item {item_id}: {sorted(fields)}")
            return False

        if image_generation is not None and image_generation != self._image_generations.get(item_id):
            logger.debug(f"Dropping stale image patch for {item_id}")
            return False

        suggestion = fields.get("suggestion", record.suggestion)
        visible = fields.get("suggestion_visible", record.suggestion_visible)
        if visible and suggestion is None:
            raise ValueError("suggestion_visible requires a suggestion")

        for key, value in fields.items():
            setattr(record, key, value)
        self._notify()
        return True

    def accept_suggestion(self, item_id: str) -> str | None:
        """
        Replace the item's name with its suggested alternative.

        Clears the suggestion and the image, since the image belonged to the
        old name. Returns the new name, or None if there was nothing to
        accept.
        """
        record = self._items.get(item_id)
        if record is None or record.suggestion is None:
            return None

        new_name = record.suggestion.alternative
        record.name = new_name
        record.suggestion = None
        record.suggestion_visible = False
        record.image = None
        record.image_pending = False
        # Any lookup still running is for the old name
        self._bump_image_generation(item_id)
        logger.debug(f"Accepted suggestion for {item_id}: {new_name!r}")
        self._notify()
        return new_name

    def dismiss_suggestion(self, item_id: str) -> bool:
        """Hide the suggestion but keep it on the item."""
        record = self._items.get(item_id)
        if record is None:
            return False
        record.suggestion_visible = False
        self._notify()
        return True
