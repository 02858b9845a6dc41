"""Resilient GitHub Client: httpx search client with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429, or 403 with x-ratelimit-remaining 0): retry honouring
      Retry-After, else exponential backoff
    - Transient errors (5xx, connection): max `max_retries` retries with backoff
    - Timeouts and other 4xx: immediate failure, no retry
    - Malformed bodies: protocol error, no retry
    - All failures mapped to RemoteSourceError (core/errors.py)

Design Decisions:
    - Wrapper over a raw httpx.AsyncClient: the mediator only sees search_repos()
    - ±25% jitter on backoff
    - An injected client is never closed here; its owner closes it
"""

import asyncio
import logging
import random

import httpx
from pydantic import ValidationError

from reposearch.core.errors import ErrorContext, RemoteSourceError
from reposearch.schemas.repo import RepoSearchResponse

logger = logging.getLogger(__name__)

IN_QUALIFIER = " in:name,description"

_SEARCH_PATH = "/search/repositories"
_RETRYABLE_STATUS = frozenset({500, 502, 503, 504})


class GithubService:
    """Searches GitHub repositories one page at a time."""

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 60_000,
        timeout_seconds: int = 30,
        client: httpx.AsyncClient | None = None,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout_seconds,
        )
        if not self._owns_client:
            self.client.headers.update(headers)
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def search_repos(
        self,
        query: str,
        page: int,
        per_page: int,
        context: ErrorContext | None = None,
    ) -> RepoSearchResponse:
        """Fetch one page of search results, sorted by stars."""
        params = {"sort": "stars", "q": query, "page": page, "per_page": per_page}
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(_SEARCH_PATH, params=params)
            except httpx.TimeoutException:
                raise RemoteSourceError(
                    "GitHub API timeout", "timeout", context=context,
                )
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == 429 or _is_rate_limited(response):
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code in _RETRYABLE_STATUS:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, context,
                    status_code=response.status_code,
                )
                continue
            if response.is_error:
                raise RemoteSourceError(
                    f"HTTP {response.status_code}: {_error_message(response)}",
                    "protocol",
                    status_code=response.status_code,
                    context=context,
                )
            return self._parse(response, attempt, context)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _parse(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> RepoSearchResponse:
        try:
            body = RepoSearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteSourceError(
                f"Malformed search response: {e}", "protocol",
                status_code=response.status_code, context=context,
            )
        logger.info(
            "GitHub search success",
            extra={"attempt": attempt + 1, "item_count": len(body.items)},
        )
        return body

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = _extract_retry_after(response)
        if attempt >= self.max_retries:
            raise RemoteSourceError(
                "Rate limit exceeded after retries",
                "rate_limit",
                status_code=response.status_code,
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"status_code": response.status_code},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self,
        e: object,
        attempt: int,
        context: ErrorContext | None,
        status_code: int | None = None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise RemoteSourceError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "transport",
                status_code=status_code,
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


def _is_rate_limited(response: httpx.Response) -> bool:
    """GitHub signals secondary/primary limits as 403 with remaining quota 0."""
    return (
        response.status_code == 403
        and response.headers.get("x-ratelimit-remaining") == "0"
    )


def _extract_retry_after(response: httpx.Response) -> int | None:
    """Retry-After header in milliseconds, if present and numeric."""
    val = response.headers.get("retry-after")
    if val and val.isdigit():
        return int(val) * 1000
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


# Singleton (initialized on startup)
github_service: GithubService | None = None


def init_github_service(**kwargs) -> GithubService:
    global github_service
    github_service = GithubService(**kwargs)
    return github_service


def get_github_service() -> GithubService:
    """FastAPI dependency for the GitHub client."""
    if not github_service:
        raise RuntimeError("GitHub service not initialized")
    return github_service
