"""Repo Repository: builds the pager stack (mediator + paging source) for a search query.

Invariants:
    - One mediator and one pager per query; the pager's paging source filters
      the store with the same query the mediator sends to GitHub
    - Page size comes from network_page_size so local and remote pages line up
"""

from reposearch.core.domain_types import GITHUB_STARTING_PAGE_INDEX
from reposearch.core.paging_state import PagingConfig
from reposearch.core.repository_protocols import RepoSource
from reposearch.infrastructure.database import DatabaseSessionManager
from reposearch.services.remote_mediator import GithubRemoteMediator
from reposearch.services.repo_pager import RepoPager
from reposearch.services.repo_paging_source import RepoPagingSource
from reposearch.services.repo_store import to_like_pattern

NETWORK_PAGE_SIZE = 30


class GithubRepository:
    """Entry point for consumers: query in, pager out."""

    def __init__(
        self,
        service: RepoSource,
        db_manager: DatabaseSessionManager,
        page_size: int = NETWORK_PAGE_SIZE,
        starting_page: int = GITHUB_STARTING_PAGE_INDEX,
        prefetch_distance: int | None = None,
    ):
        self.service = service
        self.db_manager = db_manager
        self.config = PagingConfig(
            page_size=page_size, prefetch_distance=prefetch_distance,
        )
        self.starting_page = starting_page

    def search_result_pager(self, query: str) -> RepoPager:
        """Pager over cached results for `query`; call refresh() to start it."""
        query_string = to_like_pattern(query)
        mediator = GithubRemoteMediator(
            query=query,
            service=self.service,
            db_manager=self.db_manager,
            starting_page=self.starting_page,
        )
        return RepoPager(
            config=self.config,
            mediator=mediator,
            paging_source_factory=lambda: RepoPagingSource(self.db_manager, query_string),
        )
