"""Repo Schemas: GitHub search payloads and the Repo item the pager hands out.

Invariants:
    - Repo accepts both GitHub field names (html_url, stargazers_count, forks_count)
      and the cache's own names (url, stars, forks), so ORM rows validate too
    - Repo is frozen: items inside a PagingState cannot be mutated
    - Unknown GitHub fields are ignored
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Repo(BaseModel):
    """One repository search hit."""
    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")

    id: int
    name: str
    full_name: str
    description: str | None = None
    url: str = Field(validation_alias=AliasChoices("html_url", "url"))
    stars: int = Field(0, validation_alias=AliasChoices("stargazers_count", "stars"))
    forks: int = Field(0, validation_alias=AliasChoices("forks_count", "forks"))
    language: str | None = None


class RepoSearchResponse(BaseModel):
    """Body of GET /search/repositories."""
    model_config = ConfigDict(extra="ignore")

    total_count: int = 0
    incomplete_results: bool = False
    items: list[Repo] = Field(default_factory=list)
