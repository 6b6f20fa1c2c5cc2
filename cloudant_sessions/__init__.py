"""Cloudant-backed session store compatible with express-session."""

from cloudant_sessions.client import CloudantClient, DocumentStore
from cloudant_sessions.config import Settings, StoreOptions, get_settings
from cloudant_sessions.events import ErrorChannel, ErrorEvent
from cloudant_sessions.exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentStoreError,
    ErrorKind,
    StoreError,
    TransientServiceError,
)
from cloudant_sessions.store import CloudantSessionStore

__version__ = "1.0.0"

__all__ = [
    "CloudantClient",
    "CloudantSessionStore",
    "DocumentConflictError",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "ErrorChannel",
    "ErrorEvent",
    "ErrorKind",
    "Settings",
    "StoreError",
    "StoreOptions",
    "TransientServiceError",
    "get_settings",
]
