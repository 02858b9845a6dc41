"""Initial schema: repos, remote_keys.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "repos",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(511), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("stars", sa.Integer, nullable=False, server_default="0"),
        sa.Column("forks", sa.Integer, nullable=False, server_default="0"),
        sa.Column("language", sa.String(100), nullable=True),
    )
    op.create_index("ix_repos_stars_name", "repos", ["stars", "name"])

    op.create_table(
        "remote_keys",
        sa.Column("repo_id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("prev_key", sa.Integer, nullable=True),
        sa.Column("next_key", sa.Integer, nullable=True),
    )


def downgrade() -> None:
    op.drop_table("remote_keys")
    op.drop_index("ix_repos_stars_name", table_name="repos")
    op.drop_table("repos")
