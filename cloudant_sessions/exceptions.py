"""
Exception hierarchy for document store failures.

Usage:
    from cloudant_sessions.exceptions import DocumentNotFoundError, DocumentConflictError

    try:
        doc = await client.get_document(db, doc_id)
    except DocumentNotFoundError:
        return None

Callers branch on the exception type. The HTTP status that produced the
error is kept on ``status_code`` for logging only.
"""

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    OTHER = "other"


class StoreError(Exception):
    """Base document store error with a default status code."""

    status_code: int = httpx.codes.INTERNAL_SERVER_ERROR
    kind: ErrorKind = ErrorKind.OTHER

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class DocumentNotFoundError(StoreError):
    """Document or database does not exist (404)."""

    status_code = httpx.codes.NOT_FOUND
    kind = ErrorKind.NOT_FOUND


class DocumentConflictError(StoreError):
    """Revision conflict (409) or resource already exists (412)."""

    status_code = httpx.codes.CONFLICT
    kind = ErrorKind.CONFLICT


class TransientServiceError(StoreError):
    """Rate limiting or connectivity failure. Not retried."""

    status_code = httpx.codes.SERVICE_UNAVAILABLE
    kind = ErrorKind.TRANSIENT


class DocumentStoreError(StoreError):
    """Any other failure, including malformed responses."""


_CONFLICT_STATUSES = {httpx.codes.CONFLICT, httpx.codes.PRECONDITION_FAILED}
_TRANSIENT_STATUSES = {
    httpx.codes.TOO_MANY_REQUESTS,
    httpx.codes.BAD_GATEWAY,
    httpx.codes.SERVICE_UNAVAILABLE,
    httpx.codes.GATEWAY_TIMEOUT,
}


def error_for_status(status_code: int, message: str, detail: str | None = None) -> StoreError:
    """Build the typed error matching an HTTP status code."""
    if status_code == httpx.codes.NOT_FOUND:
        cls = DocumentNotFoundError
    elif status_code in _CONFLICT_STATUSES:
        cls = DocumentConflictError
    elif status_code in _TRANSIENT_STATUSES:
        cls = TransientServiceError
    else:
        cls = DocumentStoreError
    return cls(message, detail, status_code=status_code)
