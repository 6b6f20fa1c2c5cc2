"""
Expiry index definition.

The view emits ``(doc._id, doc._rev)`` for sessions that were already stale
when the index was last refreshed. It exists for an external cleanup job;
the read path never queries it.
"""

from typing import Any

EXPIRED_SESSIONS_MAP = (
    "function(doc) {"
    " if (doc.session_ttl && doc.session_modified"
    " && doc.session_modified + doc.session_ttl * 1000 < Date.now()) {"
    " emit(doc._id, doc._rev); }"
    "}"
)


def expired_sessions_design_document(view_name: str) -> dict[str, Any]:
    """Design document body declaring the map-only expiry view."""
    return {"views": {view_name: {"map": EXPIRED_SESSIONS_MAP}}}
