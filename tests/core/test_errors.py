"""Tests for the error hierarchy: codes, categories, REST envelope."""

from reposearch.core.errors import (
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidPagingStateError,
    RemoteSourceError,
    RepoSearchError,
    ResourceNotFoundError,
)


def test_remote_source_error_is_recoverable_external_error():
    error = RemoteSourceError("boom", "transport", status_code=503)
    assert isinstance(error, RepoSearchError)
    assert error.category == ErrorCategory.EXTERNAL_API
    assert error.recoverable
    assert error.error_type == "transport"
    assert error.status_code == 503


def test_invalid_paging_state_is_not_recoverable():
    error = InvalidPagingStateError("no keys", "append")
    assert not error.recoverable
    assert error.severity == ErrorSeverity.CRITICAL
    assert error.context.load_type == "append"


def test_invalid_paging_state_is_distinct_from_transport_errors():
    assert not issubclass(InvalidPagingStateError, RemoteSourceError)
    assert not issubclass(RemoteSourceError, InvalidPagingStateError)


def test_to_response_envelope_carries_paging_context():
    ctx = ErrorContext(query="android", load_type="append", page=3)
    body = DatabaseError("disk full", "commit", context=ctx).to_response()
    assert body["error"]["code"] == "DATABASE_ERROR"
    assert body["error"]["category"] == "database"
    assert body["error"]["context"]["query"] == "android"
    assert body["error"]["context"]["page"] == 3


def test_user_message_overrides_internal_message():
    ctx = ErrorContext(user_message="Try again later")
    body = RemoteSourceError("socket reset", "transport", context=ctx).to_response()
    assert body["error"]["message"] == "Try again later"


def test_retry_after_recorded_in_context():
    error = RemoteSourceError("slow down", "rate_limit", retry_after_ms=2000)
    assert error.context.retry_after_ms == 2000


def test_not_found_maps_to_404():
    error = ResourceNotFoundError("Search", "active")
    assert error.http_status == 404
    assert "Search 'active' not found" in error.message
