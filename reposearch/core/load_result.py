"""Load Result: value returned by every mediator load.

Invariants:
    - LoadSuccess.end_of_pagination_reached means "stop requesting in this direction"
    - LoadError.cause is the original exception object, never re-wrapped
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LoadSuccess:
    end_of_pagination_reached: bool


@dataclass(frozen=True)
class LoadError:
    cause: Exception


LoadResult = LoadSuccess | LoadError
