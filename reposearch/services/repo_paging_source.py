"""Repo Paging Source: offset/limit read handle over the repos table for one query.

Invariants:
    - load(offset, limit) returns rows in store order (stars DESC, name ASC)
    - prev_key/next_key of a LocalPage are row offsets, None at either end
    - After invalidate() the source refuses to load; the pager builds a new one

Design Decisions:
    - Explicit invalidate() + listeners instead of a framework-managed source:
      the pager owns when to re-read after the mediator writes
"""

import logging
from typing import Callable

from reposearch.core.paging_state import Page
from reposearch.infrastructure.database import DatabaseSessionManager
from reposearch.services.repo_store import SqlRepoStore

logger = logging.getLogger(__name__)


class RepoPagingSource:
    """Reads windows of cached repos matching one LIKE pattern."""

    def __init__(self, db_manager: DatabaseSessionManager, query_string: str):
        self.db_manager = db_manager
        self.query_string = query_string
        self.invalid = False
        self._on_invalidate: list[Callable[[], None]] = []

    async def load(self, offset: int, limit: int) -> Page:
        if self.invalid:
            raise RuntimeError("Paging source was invalidated")
        async with self.db_manager.session() as db:
            repos = await SqlRepoStore(db).query_paginated(
                self.query_string, limit=limit, offset=offset,
            )
        return Page(
            data=tuple(repos),
            prev_key=offset if offset > 0 else None,
            next_key=offset + len(repos) if len(repos) == limit else None,
        )

    def register_invalidated_callback(self, callback: Callable[[], None]) -> None:
        self._on_invalidate.append(callback)

    def invalidate(self) -> None:
        if self.invalid:
            return
        self.invalid = True
        for callback in self._on_invalidate:
            callback()
