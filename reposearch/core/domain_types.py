"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - RepoId is GitHub's numeric repository id, stable across pages
    - PageToken is a 1-based GitHub search page index
    - LoadType is the closed set of load directions a mediator dispatches on

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

RepoId = NewType("RepoId", int)


# ─── Value Types ─────────────────────────────────────────────────

PageToken = NewType("PageToken", int)

GITHUB_STARTING_PAGE_INDEX = PageToken(1)


# ─── Enums ───────────────────────────────────────────────────────

class LoadType(str, Enum):
    """Direction of a load relative to the data already loaded."""
    REFRESH = "refresh"
    PREPEND = "prepend"
    APPEND = "append"


class LoadStatus(str, Enum):
    """Per-direction load status reported by the pager."""
    NOT_LOADING = "not_loading"
    LOADING = "loading"
    ERROR = "error"
