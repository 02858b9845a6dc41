"""Boundary Protocols: contracts between the paging core and its IO collaborators.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Store implementations never commit; the transaction belongs to the caller
    - RepoSource raises RemoteSourceError for every transport/protocol failure

Design Decisions:
    - Protocol over ABC: the SQL stores and test fakes match structurally
    - Async in Protocol: implementations do IO, the resolution logic that uses
      their results stays sync in core/page_keys.py
"""

from typing import Protocol, Sequence

from reposearch.core.page_keys import PageKeys
from reposearch.core.paging_state import HasId


class SearchPage(Protocol):
    """One page of remote search results."""
    items: Sequence[HasId]


class RepoSource(Protocol):
    """Contract for the paginated remote search, implemented by infrastructure."""
    async def search_repos(
        self, query: str, page: int, per_page: int,
    ) -> SearchPage: ...


class RemoteKeyStore(Protocol):
    """Contract for continuation-key persistence, implemented by services."""
    async def upsert_all(self, keys: Sequence[PageKeys]) -> None: ...
    async def get(self, repo_id: int) -> PageKeys | None: ...
    async def clear(self) -> None: ...


class RepoStore(Protocol):
    """Contract for repo persistence and ordered reads, implemented by services."""
    async def insert_all(self, repos: Sequence[HasId]) -> None: ...
    async def clear(self) -> None: ...
    async def query_paginated(
        self, query_string: str, limit: int, offset: int,
    ) -> list: ...
    async def count(self, query_string: str) -> int: ...
