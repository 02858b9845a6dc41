"""Error Hierarchy: typed, categorized exceptions for every repo-search failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - RemoteSourceError is recoverable: the pager reports it and the caller may retry
    - InvalidPagingStateError is a caller bug: raised, never returned as a load result
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with RepoSearchError base: FastAPI global handler catches all
    - ErrorContext as dataclass: query/load_type/page travel with the error
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    query: str | None = None
    load_type: str | None = None
    page: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class RepoSearchError(Exception):
    """Base exception for all repo-search errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "query": self.context.query,
                    "load_type": self.context.load_type,
                    "page": self.context.page,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class QueryValidationError(RepoSearchError):
    """Search query rejected before any load runs."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(RepoSearchError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Programming Errors ─────────────────────────────────────────

class InvalidPagingStateError(RepoSearchError):
    """PREPEND/APPEND invoked without the remote keys a prior load must have stored."""
    def __init__(self, message: str, load_type: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.load_type = load_type
        super().__init__(
            message, "INVALID_PAGING_STATE", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.load_type = load_type


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(RepoSearchError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class RemoteSourceError(RepoSearchError):
    """GitHub search call failed.

    error_type is one of: transport, timeout, rate_limit, protocol.
    """
    def __init__(
        self,
        message: str,
        error_type: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"GitHub API error ({error_type}): {message}",
            "REMOTE_SOURCE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx, 502,
        )
        self.error_type = error_type
        self.status_code = status_code
