"""Repo Pager: the read layer that pages through the local store and drives the mediator.

Invariants:
    - Single-flight: one asyncio.Lock serializes refresh/append/prepend, so at
      most one mediator load runs at a time for a pager
    - Append pages through local rows first; the mediator is asked only once
      the local store has nothing after the last loaded item
    - A direction whose end_of_pagination_reached is set is not loaded again
      until the next successful refresh
    - Listeners receive a fresh PagerSnapshot after every state change
    - Cancellation, or any failure other than a reported load error, restores
      the load states seen before the load started
    - close() cancels the load in flight and waits for it to unwind; every
      later load raises ResourceNotFoundError
    - A prepend shifts anchor_position by the number of rows it put in front

Design Decisions:
    - Observer callbacks (sync or async) instead of a framework live list
    - Store reads after a mediator write go through a new paging source; the
      old one is invalidated
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable

from reposearch.core.domain_types import LoadStatus, LoadType
from reposearch.core.errors import DatabaseError, InvalidPagingStateError, ResourceNotFoundError
from reposearch.core.load_result import LoadError, LoadResult, LoadSuccess
from reposearch.core.paging_state import Page, PagingConfig, PagingState
from reposearch.services.remote_mediator import GithubRemoteMediator
from reposearch.services.repo_paging_source import RepoPagingSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadState:
    """Status of one load direction."""
    status: LoadStatus = LoadStatus.NOT_LOADING
    end_of_pagination_reached: bool = False
    error: Exception | None = None

    @classmethod
    def loading(cls) -> "LoadState":
        return cls(status=LoadStatus.LOADING)

    @classmethod
    def failed(cls, error: Exception) -> "LoadState":
        return cls(status=LoadStatus.ERROR, error=error)


@dataclass(frozen=True)
class CombinedLoadStates:
    refresh: LoadState = field(default_factory=LoadState)
    prepend: LoadState = field(default_factory=LoadState)
    append: LoadState = field(default_factory=LoadState)


@dataclass(frozen=True)
class PagerSnapshot:
    """What a consumer renders: loaded items plus per-direction load states."""
    items: tuple
    anchor_position: int | None
    load_states: CombinedLoadStates


Listener = Callable[[PagerSnapshot], Awaitable[None] | None]


class RepoPager:
    """Pages one search query through the local store, fetching more on demand."""

    def __init__(
        self,
        config: PagingConfig,
        mediator: GithubRemoteMediator,
        paging_source_factory: Callable[[], RepoPagingSource],
    ):
        self.config = config
        self.mediator = mediator
        self._source_factory = paging_source_factory
        self._source = paging_source_factory()
        self._pages: list[Page] = []
        self._anchor_position: int | None = None
        self._load_states = CombinedLoadStates()
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []
        self._in_flight: asyncio.Future | None = None
        self._closed = False

    @property
    def items(self) -> tuple:
        return tuple(item for page in self._pages for item in page.data)

    @property
    def load_states(self) -> CombinedLoadStates:
        return self._load_states

    def paging_state(self) -> PagingState:
        return PagingState(
            pages=tuple(self._pages),
            anchor_position=self._anchor_position,
            config=self.config,
        )

    def snapshot(self) -> PagerSnapshot:
        return PagerSnapshot(
            items=self.items,
            anchor_position=self._anchor_position,
            load_states=self._load_states,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ─── Loads ───────────────────────────────────────────────────

    async def close(self) -> None:
        """Retire this pager: cancel the load in flight and refuse new ones.

        Returns once the cancelled load has finished unwinding, so its merge
        transaction is rolled back before anything else writes the store.
        """
        self._closed = True
        task = self._in_flight
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait([task])

    async def refresh(self) -> LoadResult:
        """Drop everything cached for the query and reload from the anchor's page."""
        return await self._run(LoadType.REFRESH, self._refresh)

    async def append(self) -> LoadResult:
        """Load the page after the last loaded item."""
        return await self._run(LoadType.APPEND, self._append)

    async def prepend(self) -> LoadResult:
        """Load the page before the first loaded item."""
        return await self._run(LoadType.PREPEND, self._prepend)

    async def access(self, index: int):
        """Read one loaded item, recording it as the anchor and prefetching near the edges."""
        items = self.items
        if not 0 <= index < len(items):
            raise IndexError(f"index {index} outside loaded range 0..{len(items)}")
        self._anchor_position = index
        distance = self.config.effective_prefetch_distance
        if index >= len(items) - distance and not self._load_states.append.end_of_pagination_reached:
            await self.append()
        elif index < distance and not self._load_states.prepend.end_of_pagination_reached:
            await self.prepend()
        return items[index]

    async def _run(
        self, load_type: LoadType, body: Callable[[], Awaitable[LoadResult]],
    ) -> LoadResult:
        direction = load_type.value
        async with self._lock:
            if self._closed:
                raise self._closed_error()
            current: LoadState = getattr(self._load_states, direction)
            if load_type is not LoadType.REFRESH and current.end_of_pagination_reached:
                return LoadSuccess(end_of_pagination_reached=True)
            previous = self._load_states
            self._in_flight = asyncio.ensure_future(self._start(direction, body))
            try:
                result = await self._in_flight
            except asyncio.CancelledError:
                self._load_states = previous
                if self._closed and not _caller_cancelled():
                    raise self._closed_error() from None
                raise
            except InvalidPagingStateError as e:
                await self._update(direction, LoadState.failed(e))
                raise
            except DatabaseError as e:
                logger.error(
                    f"Local read failed: {e.message}",
                    extra={"load_type": direction},
                )
                result = LoadError(e)
            except Exception:
                self._load_states = previous
                raise
            finally:
                self._in_flight = None
            if isinstance(result, LoadError):
                await self._update(direction, LoadState.failed(result.cause))
            return result

    async def _start(
        self, direction: str, body: Callable[[], Awaitable[LoadResult]],
    ) -> LoadResult:
        await self._update(direction, LoadState.loading())
        return await body()

    async def _refresh(self) -> LoadResult:
        result = await self.mediator.load(LoadType.REFRESH, self.paging_state())
        if isinstance(result, LoadError):
            return result
        page = await self._reload(self.config.effective_initial_load_size)
        self._pages = [page] if page.data else []
        self._load_states = CombinedLoadStates(
            append=LoadState(end_of_pagination_reached=result.end_of_pagination_reached),
        )
        await self._notify()
        return result

    async def _append(self) -> LoadResult:
        page = await self._load_after()
        if page.data:
            self._pages.append(page)
            await self._update(LoadType.APPEND.value, LoadState())
            return LoadSuccess(end_of_pagination_reached=False)

        result = await self.mediator.load(LoadType.APPEND, self.paging_state())
        if isinstance(result, LoadError):
            return result
        if not result.end_of_pagination_reached:
            self._invalidate_source()
            page = await self._load_after()
            if page.data:
                self._pages.append(page)
        await self._update(
            LoadType.APPEND.value,
            LoadState(end_of_pagination_reached=result.end_of_pagination_reached),
        )
        return result

    async def _prepend(self) -> LoadResult:
        result = await self.mediator.load(LoadType.PREPEND, self.paging_state())
        if isinstance(result, LoadError):
            return result
        if not result.end_of_pagination_reached:
            loaded = len(self.items)
            page = await self._reload(loaded + self.config.page_size)
            self._pages = [page] if page.data else []
            if self._anchor_position is not None:
                self._anchor_position += max(len(page.data) - loaded, 0)
        await self._update(
            LoadType.PREPEND.value,
            LoadState(end_of_pagination_reached=result.end_of_pagination_reached),
        )
        return result

    # ─── Helpers ─────────────────────────────────────────────────

    async def _load_after(self) -> Page:
        return await self._source.load(offset=len(self.items), limit=self.config.page_size)

    async def _reload(self, limit: int) -> Page:
        self._invalidate_source()
        return await self._source.load(offset=0, limit=limit)

    def _closed_error(self) -> ResourceNotFoundError:
        return ResourceNotFoundError("Search", self.mediator.query)

    def _invalidate_source(self) -> None:
        self._source.invalidate()
        self._source = self._source_factory()

    async def _update(self, direction: str, state: LoadState) -> None:
        self._load_states = replace(self._load_states, **{direction: state})
        await self._notify()

    async def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            outcome = listener(snapshot)
            if inspect.isawaitable(outcome):
                await outcome


def _caller_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0
