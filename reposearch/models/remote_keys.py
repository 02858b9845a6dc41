"""RemoteKeys ORM: previous/next GitHub page index for each cached repo.

Invariants:
    - One row per repo id present in repos
    - Every repo from the same GitHub response shares prev_key/next_key
    - prev_key NULL: no earlier page; next_key NULL: pagination ended

Design Decisions:
    - Separate table over extra columns on repos: page bookkeeping stays out of
      the rows the consumer reads
    - No FK to repos: both tables are cleared in one transaction, order-free
"""

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from reposearch.db.base import Base


class RemoteKeys(Base):
    """Continuation keys for one repo."""
    __tablename__ = "remote_keys"

    repo_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True, autoincrement=False,
    )
    prev_key: Mapped[int | None] = mapped_column(Integer, nullable=True)
    next_key: Mapped[int | None] = mapped_column(Integer, nullable=True)
