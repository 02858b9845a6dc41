"""Repo ORM: one cached GitHub repository search hit.

Invariants:
    - id is GitHub's repository id (no server-side default)
    - Read order is stars DESC, name ASC (indexed together)
    - Rows are replaced wholesale on conflict, never patched field by field
"""

from sqlalchemy import BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reposearch.db.base import Base


class Repo(Base):
    """Cached repository, the rows the consumer pages through."""
    __tablename__ = "repos"
    __table_args__ = (
        Index("ix_repos_stars_name", "stars", "name"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True, autoincrement=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(511), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    stars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    forks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    language: Mapped[str | None] = mapped_column(String(100), nullable=True)
