"""Error Handlers: map paging and GitHub failures onto HTTP responses.

Invariants:
    - Every error body has the shape {"error": {...}} built by RepoSearchError.to_response()
    - InvalidPagingStateError is a caller bug: 500, logged at CRITICAL with its load type
    - RemoteSourceError reaching the boundary: 502, plus Retry-After when GitHub sent one
    - ResourceNotFoundError / QueryValidationError: 404 / 400, logged at INFO only
    - Request body validation → 400 with one detail per offending field
    - Anything else → 500 without internals

Design Decisions:
    - 4xx domain errors logged at INFO, 5xx at ERROR or above
    - Paging context (query, load_type, page) copied from ErrorContext into log extras
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from reposearch.core.errors import (
    ErrorSeverity, InvalidPagingStateError, RemoteSourceError, RepoSearchError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidPagingStateError, _invalid_paging_state)
    app.add_exception_handler(RemoteSourceError, _remote_source_failure)
    app.add_exception_handler(RepoSearchError, _repo_search_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unhandled_error)


def _log_extra(request: Request, exc: RepoSearchError) -> dict:
    ctx = exc.context
    return {
        "error_code": exc.code,
        "path": request.url.path,
        "query": ctx.query,
        "load_type": ctx.load_type,
        "page": ctx.page,
    }


async def _invalid_paging_state(request: Request, exc: InvalidPagingStateError):
    logger.critical(
        f"{exc.context.load_type or 'load'} issued against an unusable paging state: {exc.message}",
        extra=_log_extra(request, exc),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _remote_source_failure(request: Request, exc: RemoteSourceError):
    logger.warning(
        f"GitHub {exc.error_type} failure surfaced to client: {exc.message}",
        extra={**_log_extra(request, exc), "status_code": exc.status_code},
    )
    headers = None
    retry_after_ms = exc.context.retry_after_ms
    if retry_after_ms:
        headers = {"Retry-After": str(math.ceil(retry_after_ms / 1000))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def _repo_search_error(request: Request, exc: RepoSearchError):
    logger.log(
        logging.INFO if exc.http_status < 500 else logging.ERROR,
        exc.message,
        extra=_log_extra(request, exc),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _request_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"] if loc != "body"),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.info(
        f"Rejected request: {len(details)} invalid field(s)",
        extra={"path": request.url.path, "error_code": "VALIDATION_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def _unhandled_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
