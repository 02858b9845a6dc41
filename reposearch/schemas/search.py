"""Search Schemas: request/response models for the search API.

Invariants:
    - SearchCreate.query: 1-256 chars, stripped, non-empty
    - Load errors are reported inside load_states, never as HTTP failures
"""

from pydantic import BaseModel, Field, field_validator

from reposearch.schemas.repo import Repo


class SearchCreate(BaseModel):
    """Start a new search, replacing the active one."""
    query: str = Field(min_length=1, max_length=256)

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query cannot be empty or whitespace")
        return v


class LoadStateResponse(BaseModel):
    status: str
    end_of_pagination_reached: bool = False
    error: dict | None = None


class LoadStatesResponse(BaseModel):
    refresh: LoadStateResponse
    prepend: LoadStateResponse
    append: LoadStateResponse


class SearchSnapshotResponse(BaseModel):
    """Loaded items of the active search plus per-direction load states."""
    query: str
    items: list[Repo]
    anchor_position: int | None = None
    load_states: LoadStatesResponse


class RepoItemResponse(BaseModel):
    index: int
    repo: Repo
