"""Tests for page-key resolution and continuation-key computation: pure, no IO."""

from dataclasses import dataclass

import pytest

from reposearch.core.domain_types import LoadType
from reposearch.core.errors import ErrorCategory, InvalidPagingStateError
from reposearch.core.page_keys import (
    PageKeys,
    build_page_keys,
    is_refresh_fallback,
    key_lookup_item,
    resolve_page,
)
from reposearch.core.paging_state import Page, PagingConfig, PagingState


@dataclass(frozen=True)
class _Item:
    id: int


def _state(*pages, anchor=None):
    return PagingState(
        pages=tuple(Page(data=tuple(_Item(i) for i in p)) for p in pages),
        anchor_position=anchor,
        config=PagingConfig(page_size=2),
    )


# -- key_lookup_item -----------------------------------------------------------

def test_refresh_without_anchor_needs_no_lookup():
    assert key_lookup_item(LoadType.REFRESH, _state([1, 2])) is None


def test_refresh_uses_item_closest_to_anchor():
    state = _state([1, 2], [3, 4], anchor=2)
    assert key_lookup_item(LoadType.REFRESH, state) == _Item(3)


def test_prepend_uses_first_item_of_first_non_empty_page():
    state = _state([], [5, 6], [7])
    assert key_lookup_item(LoadType.PREPEND, state) == _Item(5)


def test_append_uses_last_item_of_last_non_empty_page():
    state = _state([5, 6], [7, 8], [])
    assert key_lookup_item(LoadType.APPEND, state) == _Item(8)


def test_append_on_empty_state_has_no_item():
    assert key_lookup_item(LoadType.APPEND, _state()) is None


# -- resolve_page: REFRESH -----------------------------------------------------

def test_refresh_without_keys_loads_starting_page():
    resolution = resolve_page(LoadType.REFRESH, None)
    assert resolution.page == 1
    assert resolution.should_fetch


def test_refresh_reloads_page_holding_anchor():
    resolution = resolve_page(LoadType.REFRESH, PageKeys(repo_id=1, prev_key=2, next_key=4))
    assert resolution.page == 3


def test_refresh_with_exhausted_anchor_falls_back_to_starting_page():
    keys = PageKeys(repo_id=1, prev_key=4, next_key=None)
    assert resolve_page(LoadType.REFRESH, keys).page == 1
    assert is_refresh_fallback(keys)


def test_refresh_fallback_not_flagged_for_missing_or_complete_keys():
    assert not is_refresh_fallback(None)
    assert not is_refresh_fallback(PageKeys(repo_id=1, prev_key=None, next_key=2))


def test_refresh_honours_custom_starting_page():
    assert resolve_page(LoadType.REFRESH, None, starting_page=0).page == 0


# -- resolve_page: PREPEND -----------------------------------------------------

def test_prepend_without_keys_is_invalid_state():
    with pytest.raises(InvalidPagingStateError) as exc_info:
        resolve_page(LoadType.PREPEND, None)
    assert exc_info.value.load_type == "prepend"
    assert exc_info.value.category == ErrorCategory.INTERNAL


def test_prepend_on_first_page_ends_pagination_without_fetch():
    resolution = resolve_page(LoadType.PREPEND, PageKeys(repo_id=1, prev_key=None, next_key=2))
    assert resolution.end_of_pagination_reached
    assert not resolution.should_fetch


def test_prepend_loads_previous_page():
    resolution = resolve_page(LoadType.PREPEND, PageKeys(repo_id=1, prev_key=2, next_key=4))
    assert resolution.page == 2
    assert not resolution.end_of_pagination_reached


# -- resolve_page: APPEND ------------------------------------------------------

def test_append_without_keys_is_invalid_state():
    with pytest.raises(InvalidPagingStateError) as exc_info:
        resolve_page(LoadType.APPEND, None)
    assert exc_info.value.code == "INVALID_PAGING_STATE"


def test_append_without_next_key_is_invalid_state():
    with pytest.raises(InvalidPagingStateError):
        resolve_page(LoadType.APPEND, PageKeys(repo_id=1, prev_key=1, next_key=None))


def test_append_loads_next_page():
    assert resolve_page(LoadType.APPEND, PageKeys(repo_id=1, prev_key=None, next_key=2)).page == 2


# -- build_page_keys -----------------------------------------------------------

def test_starting_page_keys_have_no_prev():
    keys = build_page_keys(1, [10, 11])
    assert keys == [
        PageKeys(repo_id=10, prev_key=None, next_key=2),
        PageKeys(repo_id=11, prev_key=None, next_key=2),
    ]


def test_later_page_keys_point_both_ways():
    keys = build_page_keys(3, [7])
    assert keys == [PageKeys(repo_id=7, prev_key=2, next_key=4)]


def test_empty_page_produces_no_keys():
    assert build_page_keys(2, []) == []


def test_all_items_of_a_page_share_keys():
    keys = build_page_keys(5, [1, 2, 3, 4])
    assert {(k.prev_key, k.next_key) for k in keys} == {(4, 6)}


def test_consecutive_pages_form_contiguous_chain():
    chain = [build_page_keys(page, [page * 100])[0] for page in range(1, 6)]
    for n in range(2, len(chain)):
        assert chain[n].prev_key == chain[n - 2].next_key
    assert [k.next_key for k in chain] == [2, 3, 4, 5, 6]
