"""
Shared test fixtures for the session store test suite.
"""

import copy
import uuid
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from cloudant_sessions.config import Settings, StoreOptions
from cloudant_sessions.events import ErrorChannel
from cloudant_sessions.exceptions import DocumentConflictError, DocumentNotFoundError
from cloudant_sessions.store import CloudantSessionStore


class FakeDocumentStore:
    """In-memory document store enforcing per-document revisions."""

    def __init__(self):
        self.databases: dict[str, dict[str, dict]] = {}
        self.design_documents: dict[tuple[str, str], dict] = {}
        self.calls: list[tuple[str, ...]] = []

    def _db(self, db: str) -> dict[str, dict]:
        if db not in self.databases:
            raise DocumentNotFoundError(f"Database {db} does not exist")
        return self.databases[db]

    def _doc(self, db: str, doc_id: str) -> dict:
        docs = self._db(db)
        if doc_id not in docs:
            raise DocumentNotFoundError(f"{doc_id} missing")
        return docs[doc_id]

    @staticmethod
    def _next_rev(rev: str | None) -> str:
        n = int(rev.split("-", 1)[0]) if rev else 0
        return f"{n + 1}-{uuid.uuid4().hex}"

    async def put_database(self, db):
        self.calls.append(("put_database", db))
        if db in self.databases:
            raise DocumentConflictError("file_exists", status_code=412)
        self.databases[db] = {}
        return {"ok": True}

    async def put_design_document(self, db, ddoc, design_document):
        self.calls.append(("put_design_document", db, ddoc))
        self._db(db)
        if (db, ddoc) in self.design_documents:
            raise DocumentConflictError("Document update conflict")
        self.design_documents[(db, ddoc)] = copy.deepcopy(design_document)
        return {"ok": True, "id": f"_design/{ddoc}", "rev": self._next_rev(None)}

    async def get_document(self, db, doc_id):
        self.calls.append(("get_document", db, doc_id))
        return copy.deepcopy(self._doc(db, doc_id))

    async def head_document(self, db, doc_id):
        self.calls.append(("head_document", db, doc_id))
        return self._doc(db, doc_id)["_rev"]

    async def post_document(self, db, document):
        self.calls.append(("post_document", db, document["_id"]))
        docs = self._db(db)
        current = docs.get(document["_id"])
        presented = document.get("_rev")
        if (current or {}).get("_rev") != presented:
            raise DocumentConflictError("Document update conflict")
        stored = copy.deepcopy(document)
        stored["_rev"] = self._next_rev(presented)
        docs[document["_id"]] = stored
        return stored["_rev"]

    async def delete_document(self, db, doc_id, rev):
        self.calls.append(("delete_document", db, doc_id))
        current = self._doc(db, doc_id)
        if current["_rev"] != rev:
            raise DocumentConflictError("Document update conflict")
        del self._db(db)[doc_id]
        return self._next_rev(rev)


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings():
    """Settings configured for testing (no real document store needed)."""
    return Settings(
        cloudant_url="http://cloudant.test",
        cloudant_username="test",
        cloudant_password="test",
        session_db="sessions_test",
    )


@pytest.fixture
def document_store():
    return FakeDocumentStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def error_channel():
    return ErrorChannel()


@pytest.fixture
def reported(error_channel):
    """Events emitted on the error channel."""
    events = []
    error_channel.subscribe(events.append)
    return events


@pytest_asyncio.fixture
async def session_store(document_store, clock, error_channel):
    """Store over the in-memory backend with its database already provisioned."""
    store = CloudantSessionStore(
        document_store, StoreOptions(ttl=2), errors=error_channel, clock=clock
    )
    await store.initialize()
    return store


@pytest.fixture
def mock_client():
    """Document store client whose calls are all AsyncMocks."""
    client = AsyncMock()
    client.put_database = AsyncMock(return_value={"ok": True})
    client.put_design_document = AsyncMock(return_value={"ok": True})
    client.get_document = AsyncMock()
    client.head_document = AsyncMock()
    client.post_document = AsyncMock(return_value="2-abc")
    client.delete_document = AsyncMock(return_value="3-abc")
    return client
