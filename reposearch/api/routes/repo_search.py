"""Repo Search Routes: start a search and page through its cached results.

Invariants:
    - At most one active search: starting a new one closes the previous pager,
      cancelling its in-flight load before the new refresh clears the tables
    - Requests still waiting on a replaced search get 404
    - Load failures land in load_states; InvalidPagingStateError surfaces as 500
    - GET /items/{index} records the anchor and may prefetch the next page

Design Decisions:
    - _active_searches as module-level dict: single-process uvicorn, state lost
      on restart (the cached rows survive in the database)
"""

import logging

from fastapi import APIRouter, Depends, status

from reposearch.config import get_settings
from reposearch.core.errors import QueryValidationError, RepoSearchError, ResourceNotFoundError
from reposearch.infrastructure.database import DatabaseSessionManager, get_db_manager
from reposearch.infrastructure.github_client import GithubService, get_github_service
from reposearch.schemas.search import (
    LoadStateResponse, LoadStatesResponse, RepoItemResponse,
    SearchCreate, SearchSnapshotResponse,
)
from reposearch.services.repo_pager import LoadState, RepoPager
from reposearch.services.repo_repository import GithubRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/search", tags=["search"])

_active_searches: dict[str, RepoPager] = {}


def get_repository(
    service: GithubService = Depends(get_github_service),
    db_manager: DatabaseSessionManager = Depends(get_db_manager),
) -> GithubRepository:
    settings = get_settings()
    return GithubRepository(
        service=service,
        db_manager=db_manager,
        page_size=settings.network_page_size,
        starting_page=settings.starting_page_index,
        prefetch_distance=settings.prefetch_distance,
    )


def get_active_search() -> tuple[str, RepoPager]:
    """Active (query, pager) or 404."""
    if not _active_searches:
        raise ResourceNotFoundError("Search", "active")
    query, pager = next(iter(_active_searches.items()))
    return query, pager


@router.post(
    "", response_model=SearchSnapshotResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_search(
    body: SearchCreate, repository: GithubRepository = Depends(get_repository),
):
    """Start a search: retires the active one and refreshes from page one."""
    pager = repository.search_result_pager(body.query)
    replaced = list(_active_searches.values())
    _active_searches.clear()
    _active_searches[body.query] = pager
    for old in replaced:
        await old.close()
    logger.info("Search started", extra={"query": body.query})
    await pager.refresh()
    return _to_response(body.query, pager)


@router.get("", response_model=SearchSnapshotResponse)
async def get_search(active: tuple[str, RepoPager] = Depends(get_active_search)):
    """Current snapshot of the active search."""
    query, pager = active
    return _to_response(query, pager)


@router.post("/refresh", response_model=SearchSnapshotResponse)
async def refresh_search(active: tuple[str, RepoPager] = Depends(get_active_search)):
    query, pager = active
    await pager.refresh()
    return _to_response(query, pager)


@router.post("/append", response_model=SearchSnapshotResponse)
async def append_search(active: tuple[str, RepoPager] = Depends(get_active_search)):
    query, pager = active
    await pager.append()
    return _to_response(query, pager)


@router.post("/prepend", response_model=SearchSnapshotResponse)
async def prepend_search(active: tuple[str, RepoPager] = Depends(get_active_search)):
    query, pager = active
    await pager.prepend()
    return _to_response(query, pager)


@router.get("/items/{index}", response_model=RepoItemResponse)
async def get_search_item(
    index: int, active: tuple[str, RepoPager] = Depends(get_active_search),
):
    """Read one loaded repo; marks it as the anchor and prefetches near the edges."""
    _, pager = active
    if index < 0:
        raise QueryValidationError("index must be zero or greater", "index")
    try:
        repo = await pager.access(index)
    except IndexError:
        raise ResourceNotFoundError("Item", str(index))
    return RepoItemResponse(index=index, repo=repo)


def _to_response(query: str, pager: RepoPager) -> SearchSnapshotResponse:
    snapshot = pager.snapshot()
    states = snapshot.load_states
    return SearchSnapshotResponse(
        query=query,
        items=list(snapshot.items),
        anchor_position=snapshot.anchor_position,
        load_states=LoadStatesResponse(
            refresh=_state_response(states.refresh),
            prepend=_state_response(states.prepend),
            append=_state_response(states.append),
        ),
    )


def _state_response(state: LoadState) -> LoadStateResponse:
    error = None
    if isinstance(state.error, RepoSearchError):
        error = state.error.to_response()["error"]
    elif state.error is not None:
        error = {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
    return LoadStateResponse(
        status=state.status.value,
        end_of_pagination_reached=state.end_of_pagination_reached,
        error=error,
    )
