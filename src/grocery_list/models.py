"""
Data models for grocery-list.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .errors import FetchError

T = TypeVar("T")

# Item fields that enrichment patches are allowed to touch
PATCHABLE_FIELDS = frozenset(
    {
        "suggestion",
        "suggestion_visible",
        "suggestion_pending",
        "image",
        "image_pending",
    }
)


@dataclass(frozen=True)
class Suggestion:
    """A healthier alternative and the reason it is healthier."""

    alternative: str
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"alternative": self.alternative, "reason": self.reason}


@dataclass
class Item:
    """A grocery list entry and its enrichment state."""

    id: str
    name: str
    editing: bool = False

    # Suggestion axis
    suggestion: Suggestion | None = None
    suggestion_visible: bool = False
    suggestion_pending: bool = False

    # Image axis
    image: str | None = None
    image_pending: bool = False

    @property
    def showing_suggestion(self) -> bool:
        """True when a fetched suggestion should be rendered."""
        return self.suggestion_visible and self.suggestion is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "editing": self.editing,
            "suggestion_visible": self.suggestion_visible,
            "suggestion_pending": self.suggestion_pending,
            "image_pending": self.image_pending,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion.to_dict()
        if self.image:
            result["image"] = self.image
        return result


@dataclass
class FetchResult(Generic[T]):
    """
    Outcome of a single enrichment fetch.

    A result with no error and no value is a valid empty outcome
    ("no suggestion", "no image"), not a failure.
    """

    value: T | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def empty(cls) -> "FetchResult[T]":
        return cls()

    @classmethod
    def failed(cls, error: FetchError) -> "FetchResult[T]":
        return cls(error=error)


@dataclass(frozen=True)
class Notice:
    """A message that should be shown to the user."""

    title: str
    message: str
