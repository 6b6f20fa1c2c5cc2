"""
Cloudant session store.

Stores express-session style session dicts as documents in a Cloudant /
CouchDB database, one document per session at ``prefix + sid``. The
document layout matches the Node.js connect-ibm-cloudant-store package so
both backends can share a database.

Expiry is lazy: a stale document is only noticed, and deleted, when it is
read. Writes look up the current revision first and then write with it;
there is no retry when another writer wins the race in between.
"""

import logging
import time
from typing import Any, Callable, Mapping, Optional

from cloudant_sessions.client import DocumentStore
from cloudant_sessions.codec import from_document, to_document
from cloudant_sessions.config import StoreOptions
from cloudant_sessions.events import ErrorChannel, ErrorEvent
from cloudant_sessions.exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    StoreError,
)
from cloudant_sessions.ttl import effective_ttl, is_expired, now_ms
from cloudant_sessions.views import expired_sessions_design_document

logger = logging.getLogger(__name__)


class CloudantSessionStore:
    """
    Session lifecycle on top of a revisioned document store.

    Every operation reports failures to its caller and also emits them on
    ``errors`` so a single observer can watch all sessions.
    """

    def __init__(
        self,
        client: DocumentStore,
        options: Optional[StoreOptions] = None,
        *,
        errors: Optional[ErrorChannel] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.options = options or StoreOptions()
        self.errors = errors or ErrorChannel()
        self._clock = clock

    @property
    def db(self) -> str:
        return self.options.db

    def doc_id(self, sid: str) -> str:
        """Storage key for a session id."""
        return f"{self.options.prefix}{sid}"

    def expired_sessions_design_document(self) -> dict[str, Any]:
        return expired_sessions_design_document(self.options.expired_sessions_view)

    async def _report(self, operation: str, sid: str, error: Exception) -> None:
        logger.warning("%s session %s failed: %s", operation.upper(), sid, error)
        await self.errors.emit(ErrorEvent(operation=operation, sid=sid, error=error))

    async def initialize(self) -> None:
        """
        Create the session database and the expiry view.

        Idempotent - safe to run on every start. "Already exists" answers
        are treated as success; anything else is raised.
        """
        try:
            await self.client.put_database(self.db)
            logger.info("Created %s database for sessions", self.db)
        except DocumentConflictError:
            logger.debug("Session database %s exists", self.db)
        except StoreError:
            logger.exception("Could not create session database %s", self.db)
            raise

        ddoc = self.options.expired_sessions_ddoc
        try:
            await self.client.put_design_document(
                self.db, ddoc, self.expired_sessions_design_document()
            )
            logger.info("Created %s expired sessions view", ddoc)
        except DocumentConflictError:
            logger.debug("Design document %s exists", ddoc)
        except StoreError:
            logger.exception("Could not create design document %s", ddoc)
            raise

    async def get(self, sid: str) -> Optional[dict[str, Any]]:
        """
        Get a session by ID.

        Returns None if the session doesn't exist or is expired. An expired
        session is deleted before returning.
        """
        logger.debug("GET %s", sid)
        try:
            doc = await self.client.get_document(self.db, self.doc_id(sid))
        except DocumentNotFoundError:
            logger.debug("GET %s not found", sid)
            return None
        except StoreError as e:
            await self._report("get", sid, e)
            raise

        if is_expired(
            doc.get("session_modified"), doc.get("session_ttl"), now_ms(self._clock)
        ):
            logger.debug("GET %s expired session", sid)
            try:
                await self.destroy(sid)
            except StoreError:
                # Already reported by destroy
                logger.debug("GET %s could not remove expired session", sid)
            return None

        logger.debug("GET %s found rev %s", sid, doc.get("_rev"))
        return from_document(doc)

    async def set(self, sid: str, session: Mapping[str, Any]) -> None:
        """
        Create or replace a session.

        Looks up the current revision so the write replaces the existing
        document instead of conflicting with it.
        """
        doc_id = self.doc_id(sid)
        rev = None
        try:
            rev = await self.client.head_document(self.db, doc_id)
        except DocumentNotFoundError:
            pass
        except StoreError as e:
            await self._report("set", sid, e)
            raise

        logger.debug("SET %s rev %s", sid, rev)
        try:
            doc = to_document(
                doc_id,
                session,
                effective_ttl(self.options.ttl, session),
                now_ms(self._clock),
                rev=rev,
            )
            await self.client.post_document(self.db, doc.to_store())
        except StoreError as e:
            await self._report("set", sid, e)
            raise

    async def destroy(self, sid: str) -> None:
        """
        Delete a session.

        The current revision is read first; a session that does not exist
        is reported as an error.
        """
        logger.debug("DESTROY %s", sid)
        doc_id = self.doc_id(sid)
        try:
            doc = await self.client.get_document(self.db, doc_id)
        except StoreError as e:
            await self._report("destroy", sid, e)
            raise

        try:
            await self.client.delete_document(self.db, doc_id, doc.get("_rev"))
        except StoreError as e:
            await self._report("destroy", sid, e)
            raise

    async def touch(self, sid: str, session: Mapping[str, Any]) -> bool:
        """
        Extend a session's lifetime.

        Rewrites the stored document with a fresh modification time and a
        TTL taken from ``session``'s cookie. Failures are emitted on the
        error channel only; returns True when the document was rewritten.
        """
        logger.debug("TOUCH %s", sid)
        doc_id = self.doc_id(sid)
        try:
            stored = await self.client.get_document(self.db, doc_id)
        except StoreError as e:
            await self._report("touch", sid, e)
            return False

        try:
            doc = to_document(
                doc_id,
                from_document(stored),
                effective_ttl(self.options.ttl, session),
                now_ms(self._clock),
                rev=stored.get("_rev"),
            )
            await self.client.post_document(self.db, doc.to_store())
        except StoreError as e:
            await self._report("touch", sid, e)
            return False
        return True

    fetch = get
    upsert = set
    refresh = touch
