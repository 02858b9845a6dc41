"""Paging State: immutable snapshot of loaded pages handed to the mediator per load.

Invariants:
    - PagingState is frozen; a new snapshot is built for every load call
    - pages keep load order; each page keeps item order as read from the store
    - closest_item_to_position clamps to the first/last loaded item, never raises
    - leading_placeholder_count offsets anchor positions (0 when placeholders are off)

Design Decisions:
    - Generic over any item with an `id`: core never imports the Repo schema
    - Tuples over lists: snapshot contents cannot be mutated by the mediator
"""

from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar


class HasId(Protocol):
    """Structural contract for items the mediator keys on."""
    id: int


T = TypeVar("T", bound=HasId)


@dataclass(frozen=True)
class PagingConfig:
    """Paging knobs shared by the pager and the mediator."""
    page_size: int
    prefetch_distance: int | None = None
    initial_load_size: int | None = None

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def effective_prefetch_distance(self) -> int:
        return self.page_size if self.prefetch_distance is None else self.prefetch_distance

    @property
    def effective_initial_load_size(self) -> int:
        return self.page_size if self.initial_load_size is None else self.initial_load_size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One loaded page of items, with the local offsets around it."""
    data: tuple[T, ...]
    prev_key: int | None = None
    next_key: int | None = None


@dataclass(frozen=True)
class PagingState(Generic[T]):
    """Read-only view of the currently loaded data."""
    pages: tuple[Page[T], ...]
    anchor_position: int | None
    config: PagingConfig
    leading_placeholder_count: int = 0

    def is_empty(self) -> bool:
        return all(not page.data for page in self.pages)

    def first_item_or_none(self) -> T | None:
        for page in self.pages:
            if page.data:
                return page.data[0]
        return None

    def last_item_or_none(self) -> T | None:
        for page in reversed(self.pages):
            if page.data:
                return page.data[-1]
        return None

    def closest_item_to_position(self, anchor_position: int) -> T | None:
        """Item at anchor_position, clamped to the loaded range."""
        items = [item for page in self.pages for item in page.data]
        if not items:
            return None
        index = anchor_position - self.leading_placeholder_count
        if index < 0:
            return items[0]
        if index >= len(items):
            return items[-1]
        return items[index]


def empty_state(config: PagingConfig) -> PagingState:
    """Snapshot for the very first load: nothing loaded, no anchor."""
    return PagingState(pages=(), anchor_position=None, config=config)
