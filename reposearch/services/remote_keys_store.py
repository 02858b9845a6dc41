"""Remote Keys Store: SQL persistence for per-repo continuation keys.

Invariants:
    - upsert_all is insert-or-replace keyed by repo_id (idempotent)
    - get returns None for unknown repo ids, never raises for absence
    - Never commits: runs inside the caller's session/transaction
"""

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from reposearch.core.page_keys import PageKeys
from reposearch.models.remote_keys import RemoteKeys as RemoteKeysModel


class SqlRemoteKeyStore:
    """RemoteKeyStore over the remote_keys table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_all(self, keys: Sequence[PageKeys]) -> None:
        for key in keys:
            await self.db.merge(RemoteKeysModel(
                repo_id=key.repo_id, prev_key=key.prev_key, next_key=key.next_key,
            ))
        await self.db.flush()

    async def get(self, repo_id: int) -> PageKeys | None:
        result = await self.db.execute(
            select(RemoteKeysModel).where(RemoteKeysModel.repo_id == repo_id),
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return PageKeys(repo_id=row.repo_id, prev_key=row.prev_key, next_key=row.next_key)

    async def clear(self) -> None:
        await self.db.execute(delete(RemoteKeysModel))
