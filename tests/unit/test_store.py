"""Tests for the in-memory item store."""

import pytest

from grocery_list.models import Suggestion
from grocery_list.store import ItemStore


@pytest.fixture
def suggested(store):
    """Store holding one item with a shown suggestion and an image."""
    item_id = store.add("Peanut butter")
    store.patch(
        item_id,
        suggestion=Suggestion("Almond butter", "Less added sugar."),
        suggestion_visible=True,
        image="https://img/peanut.jpg",
    )
    return item_id


class TestAdd:
    """Test ItemStore.add."""

    def test_add_returns_id(self, store):
        """New items start with no enrichment state."""
        item_id = store.add("  Whole milk ")
        item = store.get(item_id)

        assert item.name == "Whole milk"
        assert item.editing is False
        assert item.suggestion is None
        assert item.suggestion_pending is False
        assert item.image is None
        assert item.image_pending is False

    def test_ids_are_unique(self, store):
        """Every add produces a new id, even after removal."""
        first = store.add("Milk")
        store.remove(first)
        ids = {store.add("Milk") for _ in range(50)}
        assert len(ids) == 50
        assert first not in ids

    def test_insertion_order(self, store):
        """Items keep the order they were added in."""
        a = store.add("a")
        b = store.add("b")
        c = store.add("c")
        assert store.ids() == [a, b, c]
        assert [item.name for item in store.items()] == ["a", "b", "c"]

    def test_blank_name_rejected(self, store):
        """Blank names are not items."""
        with pytest.raises(ValueError):
            store.add("   ")
        assert len(store) == 0


class TestRemove:
    """Test ItemStore.remove."""

    def test_remove(self, store):
        """Removing deletes only the target."""
        a = store.add("a")
        b = store.add("b")
        assert store.remove(a) is True
        assert store.ids() == [b]
        assert a not in store

    def test_remove_missing_is_noop(self, store):
        """Removing twice is harmless."""
        a = store.add("a")
        store.remove(a)
        assert store.remove(a) is False
        assert len(store) == 0

    def test_remove_editing_item_clears_editing(self, store):
        """The editing id never points at a deleted item."""
        a = store.add("a")
        store.begin_edit(a)
        store.remove(a)
        assert store.editing_id is None


class TestEditing:
    """Test begin_edit / commit_edit / cancel_edit."""

    def test_begin_edit_moves_editing(self, store):
        """Starting an edit un-edits every other item."""
        x = store.add("x")
        y = store.add("y")
        z = store.add("z")
        store.begin_edit(y)

        store.begin_edit(x)

        editing = {item.id: item.editing for item in store.items()}
        assert editing == {x: True, y: False, z: False}
        assert store.editing_id == x

    def test_begin_edit_missing_is_noop(self, store):
        """Unknown ids leave the current edit alone."""
        x = store.add("x")
        store.begin_edit(x)
        assert store.begin_edit("nope") is False
        assert store.editing_id == x

    def test_commit_edit(self, store):
        """Commit trims the new name and ends editing."""
        x = store.add("x")
        store.begin_edit(x)

        assert store.commit_edit(x, "  Skim milk ") is True

        item = store.get(x)
        assert item.name == "Skim milk"
        assert item.editing is False

    def test_commit_blank_keeps_edit_open(self, store):
        """A blank name is ignored and the edit stays open."""
        x = store.add("x")
        store.begin_edit(x)

        assert store.commit_edit(x, "   ") is False

        item = store.get(x)
        assert item.name == "x"
        assert item.editing is True

    def test_commit_keeps_enrichment(self, store, suggested):
        """Renaming does not touch enrichment fields."""
        store.begin_edit(suggested)
        store.commit_edit(suggested, "Crunchy peanut butter")
        item = store.get(suggested)
        assert item.suggestion.alternative == "Almond butter"
        assert item.image == "https://img/peanut.jpg"

    def test_cancel_edit(self, store):
        """Cancel ends editing without renaming."""
        x = store.add("x")
        store.begin_edit(x)
        assert store.cancel_edit() is True
        assert store.get(x).editing is False
        assert store.cancel_edit() is False


class TestPatch:
    """Test ItemStore.patch."""

    def test_patch_merges_fields(self, store):
        """Only the given fields change."""
        x = store.add("x")
        store.patch(x, image_pending=True, suggestion_pending=True)
        store.patch(x, image="https://img/x.jpg", image_pending=False)

        item = store.get(x)
        assert item.image == "https://img/x.jpg"
        assert item.image_pending is False
        assert item.suggestion_pending is True

    def test_patch_missing_item_is_dropped(self, store):
        """A patch for a deleted item does not resurrect it."""
        x = store.add("x")
        store.remove(x)

        assert store.patch(x, image="https://img/x.jpg") is False
        assert x not in store
        assert store.items() == []

    def test_patch_unknown_field(self, store):
        """Only enrichment fields can be patched."""
        x = store.add("x")
        with pytest.raises(ValueError, match="name"):
            store.patch(x, name="sneaky")

    def test_visible_requires_suggestion(self, store):
        """suggestion_visible cannot be set without a suggestion."""
        x = store.add("x")
        with pytest.raises(ValueError):
            store.patch(x, suggestion_visible=True)
        assert store.get(x).suggestion_visible is False

    def test_patch_does_not_touch_other_items(self, store):
        """Patches are addressed to one id."""
        x = store.add("x")
        y = store.add("y")
        store.patch(x, image="https://img/x.jpg")
        assert store.get(y).image is None


class TestImageGenerations:
    """Test start_image and generation-tagged image patches."""

    def test_start_image_sets_pending(self, store):
        """start_image raises the pending flag and hands out a token."""
        x = store.add("x")

        generation = store.start_image(x)

        assert generation is not None
        assert store.get(x).image_pending is True
        assert store.patch(x, image_generation=generation, image="https://img/x.jpg", image_pending=False)
        assert store.get(x).image == "https://img/x.jpg"

    def test_start_image_missing_item(self, store):
        """No token for an id that is gone."""
        assert store.start_image("nope") is None

    def test_superseded_lookup_is_dropped(self, store):
        """Only the newest lookup may write the image."""
        x = store.add("x")
        first = store.start_image(x)
        second = store.start_image(x)

        assert store.patch(x, image_generation=first, image="https://img/old.jpg", image_pending=False) is False
        item = store.get(x)
        assert item.image is None
        assert item.image_pending is True

        assert store.patch(x, image_generation=second, image="https://img/new.jpg", image_pending=False) is True
        assert store.get(x).image == "https://img/new.jpg"

    def test_accept_supersedes_lookup(self, store, suggested):
        """A lookup started before accepting belongs to the old name."""
        generation = store.start_image(suggested)
        store.accept_suggestion(suggested)

        assert store.patch(suggested, image_generation=generation, image="https://img/peanut.jpg") is False
        assert store.get(suggested).image is None


class TestSuggestionResolution:
    """Test accept_suggestion / dismiss_suggestion."""

    def test_accept(self, store, suggested):
        """Accepting swaps the name and clears suggestion and image."""
        new_name = store.accept_suggestion(suggested)

        item = store.get(suggested)
        assert new_name == "Almond butter"
        assert item.name == "Almond butter"
        assert item.suggestion is None
        assert item.suggestion_visible is False
        assert item.image is None
        assert item.image_pending is False

    def test_accept_keeps_position(self, store, suggested):
        """Accepting replaces in place."""
        other = store.add("Bread")
        store.accept_suggestion(suggested)
        assert store.ids() == [suggested, other]

    def test_accept_without_suggestion(self, store):
        """Nothing to accept is a no-op."""
        x = store.add("x")
        assert store.accept_suggestion(x) is None
        assert store.get(x).name == "x"

    def test_accept_missing_item(self, store):
        """Unknown ids are a no-op."""
        assert store.accept_suggestion("nope") is None

    def test_dismiss_keeps_suggestion(self, store, suggested):
        """Dismiss hides the suggestion but keeps the data."""
        assert store.dismiss_suggestion(suggested) is True

        item = store.get(suggested)
        assert item.suggestion_visible is False
        assert item.suggestion == Suggestion("Almond butter", "Less added sugar.")

    def test_accept_after_dismiss(self, store, suggested):
        """A dismissed suggestion can still be accepted."""
        store.dismiss_suggestion(suggested)
        assert store.accept_suggestion(suggested) == "Almond butter"


class TestSnapshotsAndListeners:
    """Test read-side isolation and change notification."""

    def test_snapshots_are_copies(self, store):
        """Mutating a snapshot does not change the store."""
        x = store.add("x")
        snapshot = store.get(x)
        snapshot.name = "changed"
        snapshot.image = "https://img/hack.jpg"
        assert store.get(x).name == "x"
        assert store.get(x).image is None

    def test_listener_called_per_mutation(self, store):
        """Each mutation notifies once with the full list."""
        seen = []
        store.subscribe(seen.append)

        x = store.add("x")
        store.patch(x, image_pending=True)
        store.remove(x)
        store.remove(x)  # no-op, no notification

        assert len(seen) == 3
        assert [item.name for item in seen[0]] == ["x"]
        assert seen[1][0].image_pending is True
        assert seen[2] == []

    def test_unsubscribe(self, store):
        """Unsubscribed listeners are not called."""
        seen = []
        unsubscribe = store.subscribe(seen.append)
        store.add("x")
        unsubscribe()
        store.add("y")
        assert len(seen) == 1

    def test_failing_listener_does_not_undo(self, store):
        """A broken listener does not block the change or other listeners."""
        seen = []

        def broken(items):
            raise RuntimeError("render failed")

        store.subscribe(broken)
        store.subscribe(seen.append)

        x = store.add("x")

        assert x in store
        assert len(seen) == 1


def test_store_fixture_is_isolated():
    """Each ItemStore instance has its own items."""
    a = ItemStore()
    b = ItemStore()
    a.add("x")
    assert len(b) == 0
