"""GitHub Remote Mediator: fetches GitHub pages on demand and merges them into the local store.

The local store (repos + remote_keys) is the source of truth the pager reads.
When the pager runs out of local rows it calls load(), which:

    1. picks the loaded item whose stored keys decide the next page
       (REFRESH: item at the anchor, PREPEND: first item, APPEND: last item),
    2. resolves the GitHub page to request (core/page_keys.py),
    3. fetches that page,
    4. computes prev/next keys shared by every repo of the page,
    5. in one transaction clears both tables (REFRESH only), then writes the
       keys and the repos,
    6. reports whether pagination ended (empty page).

Invariants:
    - Stateless across calls: everything lives in the two tables
    - RemoteSourceError and DatabaseError come back as LoadError, never raised
    - InvalidPagingStateError is raised: a PREPEND/APPEND without stored keys is a caller bug
    - Keys and repos are committed together or not at all; cancellation rolls back

Design Decisions:
    - Key lookup uses its own short read session; the merge uses a separate
      write transaction so the network call never holds a transaction open
    - Store classes injectable so tests can fail the merge mid-way
"""

import logging
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from reposearch.core.domain_types import GITHUB_STARTING_PAGE_INDEX, LoadType
from reposearch.core.errors import (
    DatabaseError, InvalidPagingStateError, RemoteSourceError,
)
from reposearch.core.load_result import LoadError, LoadResult, LoadSuccess
from reposearch.core.page_keys import (
    PageKeys, build_page_keys, is_refresh_fallback, key_lookup_item, resolve_page,
)
from reposearch.core.paging_state import PagingState
from reposearch.core.repository_protocols import RemoteKeyStore, RepoSource, RepoStore
from reposearch.infrastructure.database import DatabaseSessionManager
from reposearch.infrastructure.github_client import IN_QUALIFIER
from reposearch.services.remote_keys_store import SqlRemoteKeyStore
from reposearch.services.repo_store import SqlRepoStore

logger = logging.getLogger(__name__)


class GithubRemoteMediator:
    """Bridges one search query between GitHub and the local store."""

    def __init__(
        self,
        query: str,
        service: RepoSource,
        db_manager: DatabaseSessionManager,
        starting_page: int = GITHUB_STARTING_PAGE_INDEX,
        key_store_factory: Callable[[AsyncSession], RemoteKeyStore] = SqlRemoteKeyStore,
        repo_store_factory: Callable[[AsyncSession], RepoStore] = SqlRepoStore,
    ):
        self.query = query
        self.service = service
        self.db_manager = db_manager
        self.starting_page = starting_page
        self._key_store = key_store_factory
        self._repo_store = repo_store_factory

    async def load(self, load_type: LoadType, state: PagingState) -> LoadResult:
        log_extra = {"query": self.query, "load_type": load_type.value}
        try:
            remote_keys = await self._lookup_remote_keys(load_type, state)
        except DatabaseError as e:
            logger.error(f"Remote key lookup failed: {e.message}", extra=log_extra)
            return LoadError(e)

        try:
            resolution = resolve_page(load_type, remote_keys, self.starting_page)
        except InvalidPagingStateError as e:
            e.context.query = self.query
            logger.error(f"Invalid paging state: {e.message}", extra=log_extra)
            raise

        if load_type is LoadType.REFRESH and is_refresh_fallback(remote_keys):
            logger.warning(
                "Anchor item has no next_key, refreshing from the starting page",
                extra=log_extra,
            )
        if not resolution.should_fetch:
            logger.info(
                "Nothing earlier to load",
                extra={**log_extra, "end_of_pagination": True},
            )
            return LoadSuccess(end_of_pagination_reached=True)

        page = resolution.page
        log_extra["page"] = page
        try:
            response = await self.service.search_repos(
                self.query + IN_QUALIFIER, page, state.config.page_size,
            )
        except RemoteSourceError as e:
            e.context.query = self.query
            e.context.load_type = load_type.value
            e.context.page = page
            logger.warning(f"GitHub fetch failed: {e.message}", extra=log_extra)
            return LoadError(e)

        repos = list(response.items)
        end_of_pagination = not repos
        keys = build_page_keys(page, [repo.id for repo in repos], self.starting_page)
        try:
            await self._merge(load_type, keys, repos)
        except DatabaseError as e:
            logger.error(f"Merge failed, rolled back: {e.message}", extra=log_extra)
            return LoadError(e)

        logger.info(
            "Page merged",
            extra={
                **log_extra,
                "item_count": len(repos),
                "end_of_pagination": end_of_pagination,
            },
        )
        return LoadSuccess(end_of_pagination_reached=end_of_pagination)

    async def _lookup_remote_keys(
        self, load_type: LoadType, state: PagingState,
    ) -> PageKeys | None:
        item = key_lookup_item(load_type, state)
        if item is None:
            return None
        async with self.db_manager.session() as db:
            return await self._key_store(db).get(item.id)

    async def _merge(self, load_type: LoadType, keys: list[PageKeys], repos: list) -> None:
        async with self.db_manager.transaction() as db:
            key_store = self._key_store(db)
            repo_store = self._repo_store(db)
            if load_type is LoadType.REFRESH:
                await key_store.clear()
                await repo_store.clear()
            await key_store.upsert_all(keys)
            await repo_store.insert_all(repos)
