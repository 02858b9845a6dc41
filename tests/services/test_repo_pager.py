"""Integration Tests: RepoPager over SQLite, mediator, and a scripted GitHub source.

Invariants:
    - Append serves local rows before asking the mediator
    - Ended directions are not loaded again
    - Loads for one pager never overlap
    - Listeners see LOADING then the settled state
"""

import asyncio

import pytest

from reposearch.core.domain_types import LoadStatus
from reposearch.core.errors import InvalidPagingStateError, RemoteSourceError, ResourceNotFoundError
from reposearch.core.load_result import LoadError, LoadSuccess
from reposearch.core.paging_state import PagingConfig
from reposearch.services.remote_mediator import GithubRemoteMediator
from reposearch.services.repo_pager import CombinedLoadStates, RepoPager
from reposearch.services.repo_paging_source import RepoPagingSource
from reposearch.services.repo_repository import GithubRepository
from reposearch.services.repo_store import SqlRepoStore

from tests.services.fake_github import FakeRepoSource, make_repo

A = make_repo(1, stars=10, name="A")
B = make_repo(2, stars=5, name="B")
C = make_repo(3, stars=4, name="C")
D = make_repo(4, stars=3, name="D")
E = make_repo(5, stars=2, name="E")
F = make_repo(6, stars=1, name="F")


def _pager(source, db_manager, **config_kwargs) -> RepoPager:
    config = PagingConfig(page_size=2, **config_kwargs)
    mediator = GithubRemoteMediator("android", source, db_manager)
    return RepoPager(
        config=config,
        mediator=mediator,
        paging_source_factory=lambda: RepoPagingSource(db_manager, "%android%"),
    )


def _ids(pager):
    return [repo.id for repo in pager.items]


# ==============================================================================
# Refresh
# ==============================================================================


async def test_refresh_loads_first_page_and_notifies(db_manager):
    source = FakeRepoSource({1: [A, B]})
    pager = _pager(source, db_manager)
    seen = []
    pager.subscribe(seen.append)

    result = await pager.refresh()

    assert result == LoadSuccess(end_of_pagination_reached=False)
    assert _ids(pager) == [1, 2]
    assert seen[0].load_states.refresh.status is LoadStatus.LOADING
    assert seen[-1].load_states == CombinedLoadStates()
    assert [r.id for r in seen[-1].items] == [1, 2]


async def test_async_listener_is_awaited(db_manager):
    pager = _pager(FakeRepoSource({1: [A]}), db_manager)
    seen = []

    async def listener(snapshot):
        await asyncio.sleep(0)
        seen.append(snapshot)

    pager.subscribe(listener)
    await pager.refresh()

    assert len(seen) >= 2


async def test_unsubscribed_listener_stops_receiving(db_manager):
    pager = _pager(FakeRepoSource({1: [A]}), db_manager)
    seen = []
    unsubscribe = pager.subscribe(seen.append)
    unsubscribe()
    unsubscribe()

    await pager.refresh()

    assert seen == []


async def test_refresh_failure_is_reported_in_load_states(db_manager):
    source = FakeRepoSource()
    source.errors[1] = RemoteSourceError("HTTP 503", "transport")
    pager = _pager(source, db_manager)

    result = await pager.refresh()

    assert isinstance(result, LoadError)
    assert pager.load_states.refresh.status is LoadStatus.ERROR
    assert pager.load_states.refresh.error is source.errors[1]
    assert pager.items == ()


async def test_refresh_with_no_results_ends_append(db_manager):
    source = FakeRepoSource()
    pager = _pager(source, db_manager)

    await pager.refresh()
    result = await pager.append()

    assert result == LoadSuccess(end_of_pagination_reached=True)
    assert pager.load_states.append.end_of_pagination_reached
    assert source.requested_pages == [1]


async def test_refresh_after_error_recovers(db_manager):
    source = FakeRepoSource({1: [A, B]})
    source.errors[1] = RemoteSourceError("HTTP 503", "transport")
    pager = _pager(source, db_manager)
    await pager.refresh()

    del source.errors[1]
    await pager.refresh()

    assert pager.load_states.refresh.status is LoadStatus.NOT_LOADING
    assert _ids(pager) == [1, 2]


# ==============================================================================
# Append
# ==============================================================================


async def test_append_serves_local_rows_before_fetching(db_manager):
    source = FakeRepoSource({1: [A, B], 2: [C, D]})
    pager = _pager(source, db_manager, initial_load_size=1)

    await pager.refresh()
    assert _ids(pager) == [1]

    await pager.append()
    assert _ids(pager) == [1, 2]
    assert source.requested_pages == [1]

    await pager.append()
    assert _ids(pager) == [1, 2, 3, 4]
    assert source.requested_pages == [1, 2]


async def test_ended_append_makes_no_further_calls(db_manager):
    source = FakeRepoSource({1: [A, B]})
    pager = _pager(source, db_manager)
    await pager.refresh()

    first = await pager.append()
    second = await pager.append()

    assert first == LoadSuccess(end_of_pagination_reached=True)
    assert second == LoadSuccess(end_of_pagination_reached=True)
    assert source.requested_pages == [1, 2]
    assert _ids(pager) == [1, 2]


async def test_append_without_refresh_is_invalid_state(db_manager):
    pager = _pager(FakeRepoSource(), db_manager)

    with pytest.raises(InvalidPagingStateError):
        await pager.append()

    assert pager.load_states.append.status is LoadStatus.ERROR


async def test_append_remote_failure_keeps_loaded_items(db_manager):
    source = FakeRepoSource({1: [A, B]})
    source.errors[2] = RemoteSourceError("connection reset", "transport")
    pager = _pager(source, db_manager)
    await pager.refresh()

    result = await pager.append()

    assert isinstance(result, LoadError)
    assert pager.load_states.append.status is LoadStatus.ERROR
    assert _ids(pager) == [1, 2]


# ==============================================================================
# Prepend
# ==============================================================================


async def test_prepend_on_first_page_ends(db_manager):
    source = FakeRepoSource({1: [A, B]})
    pager = _pager(source, db_manager)
    await pager.refresh()

    result = await pager.prepend()

    assert result == LoadSuccess(end_of_pagination_reached=True)
    assert pager.load_states.prepend.end_of_pagination_reached
    assert source.requested_pages == [1]


# ==============================================================================
# Access and concurrency
# ==============================================================================


async def test_access_near_end_prefetches_next_page(db_manager):
    source = FakeRepoSource({1: [A, B], 2: [C, D]})
    pager = _pager(source, db_manager)
    await pager.refresh()

    repo = await pager.access(1)

    assert repo.id == 2
    assert pager.snapshot().anchor_position == 1
    assert _ids(pager) == [1, 2, 3, 4]


async def test_access_outside_loaded_range_raises(db_manager):
    pager = _pager(FakeRepoSource({1: [A]}), db_manager)
    await pager.refresh()

    with pytest.raises(IndexError):
        await pager.access(5)
    with pytest.raises(IndexError):
        await pager.access(-1)


async def test_concurrent_appends_run_one_at_a_time(db_manager):
    source = FakeRepoSource({1: [A, B], 2: [C, D], 3: [E, F]}, delay=0.01)
    pager = _pager(source, db_manager)
    await pager.refresh()

    await asyncio.gather(pager.append(), pager.append())

    assert source.max_in_flight == 1
    assert source.requested_pages == [1, 2, 3]
    assert _ids(pager) == [1, 2, 3, 4, 5, 6]


async def test_cancelled_append_restores_load_states(db_manager):
    source = FakeRepoSource({1: [A, B], 2: [C, D]})
    pager = _pager(source, db_manager)
    await pager.refresh()
    before = pager.load_states
    source.delay = 1.0

    task = asyncio.create_task(pager.append())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert pager.load_states == before
    assert _ids(pager) == [1, 2]


# ==============================================================================
# Repository facade
# ==============================================================================


async def test_repository_builds_pager_for_query(db_manager):
    source = FakeRepoSource({1: [A, B]})
    repository = GithubRepository(source, db_manager, page_size=2)

    pager = repository.search_result_pager("android")
    await pager.refresh()

    assert source.calls == [
        {"query": "android in:name,description", "page": 1, "per_page": 2},
    ]
    assert _ids(pager) == [1, 2]


# ==============================================================================
# Failure unwinding and retirement
# ==============================================================================


class _BrokenPagingSource(RepoPagingSource):
    async def load(self, offset, limit):
        raise RuntimeError("read handle gone")


async def test_unexpected_failure_restores_load_states(db_manager):
    mediator = GithubRemoteMediator("android", FakeRepoSource({1: [A]}), db_manager)
    pager = RepoPager(
        config=PagingConfig(page_size=2),
        mediator=mediator,
        paging_source_factory=lambda: _BrokenPagingSource(db_manager, "%android%"),
    )

    with pytest.raises(RuntimeError):
        await pager.refresh()

    assert pager.load_states == CombinedLoadStates()


async def test_raising_listener_does_not_leave_direction_loading(db_manager):
    pager = _pager(FakeRepoSource({1: [A, B]}), db_manager)

    def listener(snapshot):
        if snapshot.load_states.refresh.status is LoadStatus.LOADING:
            raise ValueError("render failed")

    pager.subscribe(listener)
    with pytest.raises(ValueError):
        await pager.refresh()

    assert pager.load_states.refresh.status is LoadStatus.NOT_LOADING


async def test_close_cancels_in_flight_load_before_next_refresh(db_manager):
    old_source = FakeRepoSource({1: [A, B], 2: [C, D]})
    old = _pager(old_source, db_manager)
    await old.refresh()
    old_source.delay = 0.05

    append = asyncio.create_task(old.append())
    await asyncio.sleep(0.01)
    await old.close()
    new = _pager(FakeRepoSource({1: [E, F]}), db_manager)
    await new.refresh()

    with pytest.raises(ResourceNotFoundError):
        await append
    async with db_manager.session() as db:
        stored = await SqlRepoStore(db).query_paginated("%", limit=10, offset=0)
    assert [r.id for r in stored] == [5, 6]


async def test_closed_pager_refuses_loads(db_manager):
    pager = _pager(FakeRepoSource({1: [A]}), db_manager)
    await pager.close()

    with pytest.raises(ResourceNotFoundError):
        await pager.refresh()


async def test_prepend_shifts_anchor_onto_same_item(db_manager):
    source = FakeRepoSource({1: [A, B], 2: [C, D]})
    pager = _pager(source, db_manager, prefetch_distance=1)
    await pager.refresh()
    await pager.append()
    await pager.access(2)
    await pager.refresh()
    assert _ids(pager) == [3, 4]

    await pager.access(0)

    assert _ids(pager) == [1, 2, 3, 4]
    assert pager.snapshot().anchor_position == 2
    await pager.refresh()
    assert source.requested_pages == [1, 2, 2, 1, 2]
