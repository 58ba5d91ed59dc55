"""Domain models for the trending repositories list.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.

States and events are closed unions of frozen dataclasses. Code that
branches on them ends by passing the leftover value to something typed
``Never`` (``typing.assert_never``, or a handler that logs and ignores
it) so a type checker flags any variant that is not handled.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True)
class Item:
    """A single fetched repository."""

    name: str
    description: str
    category: str  # e.g. primary language, "Dart"
    url: str = ""
    stars: int = 0

    def __post_init__(self) -> None:
        """Validate item invariants on creation."""
        if self.stars < 0:
            raise ValueError(f"stars must be non-negative, got {self.stars}")


@dataclass(frozen=True)
class FetchPage:
    """The result of one call to the fetch port."""

    items: tuple[Item, ...]  # immutable for frozen dataclass
    cursor: str | None
    has_more: bool

    def __post_init__(self) -> None:
        """Accept any sequence of items and store it as a tuple."""
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))


# ============================================================================
# STATES
# ============================================================================


@dataclass(frozen=True)
class Idle:
    """No data yet, no error."""


@dataclass(frozen=True)
class Loading:
    """A fetch is in flight."""


@dataclass(frozen=True)
class Loaded:
    """Repositories are available.

    ``all`` holds every item accumulated since the last fresh fetch,
    ``visible`` the items matching the active category filter.
    ``cursor`` and ``has_more`` come from the most recent page and drive
    pagination.
    """

    all: tuple[Item, ...]
    visible: tuple[Item, ...]
    cursor: str | None = None
    has_more: bool = False

    def __post_init__(self) -> None:
        """Store item sequences as tuples."""
        if not isinstance(self.all, tuple):
            object.__setattr__(self, "all", tuple(self.all))
        if not isinstance(self.visible, tuple):
            object.__setattr__(self, "visible", tuple(self.visible))


@dataclass(frozen=True)
class Failed:
    """The last fetch failed."""

    description: str


ReducerState: TypeAlias = Idle | Loading | Loaded | Failed


# ============================================================================
# EVENTS
# ============================================================================


@dataclass(frozen=True)
class FetchRequested:
    """Load the first page, discarding any loaded data and filter."""


@dataclass(frozen=True)
class FilterByCategoryRequested:
    """Show only items of ``category``; empty or None shows everything."""

    category: str | None = None


@dataclass(frozen=True)
class LoadMoreRequested:
    """Append the next page after the current cursor."""


Event: TypeAlias = FetchRequested | FilterByCategoryRequested | LoadMoreRequested


def filter_by_category(
    items: Sequence[Item], category: str | None
) -> tuple[Item, ...]:
    """Return the items whose category equals ``category``, in order.

    An empty or missing category matches every item.
    """
    if not category:
        return tuple(items)
    return tuple(item for item in items if item.category == category)
