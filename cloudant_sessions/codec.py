"""
Conversion between middleware session dicts and stored session documents.

The stored layout is compatible with the Node.js connect-ibm-cloudant-store
package: session fields at the top level next to ``_id``, ``_rev``,
``session_ttl`` and ``session_modified`` (epoch milliseconds).
"""

import json
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from cloudant_sessions.exceptions import DocumentStoreError

METADATA_FIELDS = frozenset({"_id", "_rev", "session_ttl", "session_modified"})


class SessionDocument(BaseModel):
    """A session as persisted in the document store."""

    doc_id: str = Field(alias="_id")
    rev: Optional[str] = Field(default=None, alias="_rev")
    session_ttl: int
    session_modified: int
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_store(self) -> dict[str, Any]:
        """Flatten to the stored layout, omitting an unknown revision."""
        data = dict(self.payload)
        data["_id"] = self.doc_id
        if self.rev is not None:
            data["_rev"] = self.rev
        data["session_ttl"] = self.session_ttl
        data["session_modified"] = self.session_modified
        return data


def _snapshot(session: Mapping[str, Any]) -> dict[str, Any]:
    # JSON round trip: detaches nested objects and rejects values
    # the store could not hold anyway.
    try:
        return json.loads(json.dumps(dict(session)))
    except (TypeError, ValueError) as e:
        raise DocumentStoreError("Session is not JSON serializable", str(e)) from e


def to_document(
    doc_id: str,
    session: Mapping[str, Any],
    ttl: int,
    now_ms: int,
    rev: Optional[str] = None,
) -> SessionDocument:
    """Freeze a session into a document stamped with id, ttl and modification time."""
    return SessionDocument.model_validate(
        {
            "_id": doc_id,
            "_rev": rev,
            "session_ttl": ttl,
            "session_modified": now_ms,
            "payload": from_document(_snapshot(session)),
        }
    )


def from_document(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Session fields of a stored document, without storage metadata."""
    return {k: v for k, v in raw.items() if k not in METADATA_FIELDS}
