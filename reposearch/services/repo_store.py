"""Repo Store: SQL persistence and ordered, filtered reads of cached repos.

Invariants:
    - insert_all is insert-or-replace keyed by repo id (idempotent)
    - Reads match name OR description against a LIKE pattern, case-insensitive
    - Read order is stars DESC, name ASC, id ASC (total and stable across pages)
    - Never commits: runs inside the caller's session/transaction
"""

from typing import Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from reposearch.models.repo import Repo as RepoModel
from reposearch.schemas.repo import Repo


def to_like_pattern(query: str) -> str:
    """Free-text query to the LIKE pattern the store filters on."""
    return f"%{query.replace(' ', '%')}%"


class SqlRepoStore:
    """RepoStore over the repos table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_all(self, repos: Sequence[Repo]) -> None:
        for repo in repos:
            await self.db.merge(RepoModel(**repo.model_dump()))
        await self.db.flush()

    async def clear(self) -> None:
        await self.db.execute(delete(RepoModel))

    async def query_paginated(
        self, query_string: str, limit: int, offset: int,
    ) -> list[Repo]:
        """One window of matching repos in display order."""
        stmt = (
            select(RepoModel)
            .where(_matches(query_string))
            .order_by(RepoModel.stars.desc(), RepoModel.name.asc(), RepoModel.id.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return [Repo.model_validate(row) for row in result.scalars()]

    async def count(self, query_string: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(RepoModel).where(_matches(query_string)),
        )
        return result.scalar_one()


def _matches(query_string: str):
    return or_(
        RepoModel.name.ilike(query_string),
        RepoModel.description.ilike(query_string),
    )
