"""ORM Models: SQLAlchemy declarative models for cached search data.

Invariants:
    - All models inherit from Base (db/base.py)
    - repos and remote_keys are written and cleared together, never separately

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete before create_all
"""

from reposearch.models.repo import Repo  # noqa: F401
from reposearch.models.remote_keys import RemoteKeys  # noqa: F401
