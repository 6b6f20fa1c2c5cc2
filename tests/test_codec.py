"""Tests for session document encoding."""

import pytest

from cloudant_sessions.codec import METADATA_FIELDS, SessionDocument, from_document, to_document
from cloudant_sessions.exceptions import DocumentStoreError


def test_to_document_stamps_storage_fields():
    doc = to_document("sess:abc", {"user": "x"}, 60, 1234)

    assert doc.to_store() == {
        "_id": "sess:abc",
        "session_ttl": 60,
        "session_modified": 1234,
        "user": "x",
    }


def test_to_document_includes_known_revision():
    doc = to_document("sess:abc", {"user": "x"}, 60, 1234, rev="2-abc")
    assert doc.to_store()["_rev"] == "2-abc"
    assert doc.rev == "2-abc"


def test_to_document_replaces_stale_metadata():
    session = {"_id": "other", "_rev": "9-old", "session_ttl": 1, "session_modified": 1, "a": 1}
    data = to_document("sess:abc", session, 60, 1234).to_store()

    assert data == {"_id": "sess:abc", "session_ttl": 60, "session_modified": 1234, "a": 1}


def test_to_document_detaches_nested_values():
    session = {"cart": {"items": [1]}}
    doc = to_document("sess:abc", session, 60, 1234)
    session["cart"]["items"].append(2)

    assert doc.payload == {"cart": {"items": [1]}}


def test_to_document_rejects_unserializable_values():
    with pytest.raises(DocumentStoreError) as exc_info:
        to_document("sess:abc", {"handle": object()}, 60, 1234)
    assert isinstance(exc_info.value.__cause__, TypeError)


def test_payload_fields_sharing_model_names_survive():
    doc = to_document("sess:abc", {"rev": "mine", "doc_id": 7, "payload": []}, 60, 1234)
    data = doc.to_store()

    assert data["rev"] == "mine"
    assert data["doc_id"] == 7
    assert data["payload"] == []
    assert data["_id"] == "sess:abc"


def test_from_document_strips_metadata():
    raw = {
        "_id": "sess:abc",
        "_rev": "1-abc",
        "session_ttl": 60,
        "session_modified": 1234,
        "cookie": {"maxAge": 1000},
    }
    assert from_document(raw) == {"cookie": {"maxAge": 1000}}
    assert METADATA_FIELDS.isdisjoint(from_document(raw))


def test_session_document_fields():
    doc = to_document("sess:abc", {"u": 1}, 5, 9, rev="1-a")

    assert isinstance(doc, SessionDocument)
    assert doc.doc_id == "sess:abc"
    assert doc.session_ttl == 5
    assert doc.session_modified == 9
    assert doc.payload == {"u": 1}
