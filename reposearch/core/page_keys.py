"""Page Keys: pure page-key resolution and continuation-key computation for the mediator.

Invariants:
    - REFRESH with no anchor, no stored key, or a key without next_key loads the starting page
    - PREPEND with no stored key for the first item raises InvalidPagingStateError
    - PREPEND whose first item has prev_key None ends pagination without a fetch
    - APPEND with no stored key, or a key without next_key, raises InvalidPagingStateError
    - Every item of one fetched page gets the same prev_key/next_key pair
    - prev_key is None only on the starting page; next_key is None only on an empty page

Design Decisions:
    - Dispatch on LoadType through a dict of resolvers: each direction is a plain function
    - No IO here: the mediator looks the key up, then asks this module what to fetch
"""

from dataclasses import dataclass
from typing import Callable, Sequence

from reposearch.core.domain_types import GITHUB_STARTING_PAGE_INDEX, LoadType
from reposearch.core.errors import InvalidPagingStateError
from reposearch.core.paging_state import PagingState


@dataclass(frozen=True)
class PageKeys:
    """Continuation keys stored for one repo."""
    repo_id: int
    prev_key: int | None
    next_key: int | None


@dataclass(frozen=True)
class PageResolution:
    """What a load should do: fetch `page`, or stop because pagination ended."""
    page: int | None
    end_of_pagination_reached: bool = False

    @property
    def should_fetch(self) -> bool:
        return self.page is not None


def key_lookup_item(load_type: LoadType, state: PagingState):
    """Pick the loaded item whose stored keys decide the next page, or None."""
    if state.is_empty():
        return None
    if load_type is LoadType.REFRESH:
        if state.anchor_position is None:
            return None
        return state.closest_item_to_position(state.anchor_position)
    if load_type is LoadType.PREPEND:
        return state.first_item_or_none()
    return state.last_item_or_none()


def resolve_page(
    load_type: LoadType,
    remote_keys: PageKeys | None,
    starting_page: int = GITHUB_STARTING_PAGE_INDEX,
) -> PageResolution:
    """Turn the looked-up keys into the page to fetch for this load type."""
    return _RESOLVERS[load_type](remote_keys, starting_page)


def is_refresh_fallback(remote_keys: PageKeys | None) -> bool:
    """True when a REFRESH found keys for its anchor but they carry no next_key.

    The anchor then sits on the last, already exhausted page; the refresh
    restarts from the starting page instead of failing.
    """
    return remote_keys is not None and remote_keys.next_key is None


def build_page_keys(
    page: int,
    repo_ids: Sequence[int],
    starting_page: int = GITHUB_STARTING_PAGE_INDEX,
) -> list[PageKeys]:
    """Keys for every repo of one fetched page; empty when the page was empty."""
    end_of_pagination = not repo_ids
    prev_key = None if page == starting_page else page - 1
    next_key = None if end_of_pagination else page + 1
    return [
        PageKeys(repo_id=repo_id, prev_key=prev_key, next_key=next_key)
        for repo_id in repo_ids
    ]


def _resolve_refresh(remote_keys: PageKeys | None, starting_page: int) -> PageResolution:
    if remote_keys is None or remote_keys.next_key is None:
        return PageResolution(page=starting_page)
    return PageResolution(page=remote_keys.next_key - 1)


def _resolve_prepend(remote_keys: PageKeys | None, starting_page: int) -> PageResolution:
    if remote_keys is None:
        # PREPEND implies an earlier load stored keys for what is on screen.
        raise InvalidPagingStateError(
            "Remote key and the prev_key should not be null", LoadType.PREPEND.value,
        )
    if remote_keys.prev_key is None:
        return PageResolution(page=None, end_of_pagination_reached=True)
    return PageResolution(page=remote_keys.prev_key)


def _resolve_append(remote_keys: PageKeys | None, starting_page: int) -> PageResolution:
    if remote_keys is None or remote_keys.next_key is None:
        raise InvalidPagingStateError(
            f"Remote key should not be null for {LoadType.APPEND.value}",
            LoadType.APPEND.value,
        )
    return PageResolution(page=remote_keys.next_key)


_RESOLVERS: dict[LoadType, Callable[[PageKeys | None, int], PageResolution]] = {
    LoadType.REFRESH: _resolve_refresh,
    LoadType.PREPEND: _resolve_prepend,
    LoadType.APPEND: _resolve_append,
}
