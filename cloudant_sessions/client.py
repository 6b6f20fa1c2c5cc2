"""
Async client for a Cloudant / CouchDB document store.

Provides the six document calls the session store needs:
- database and design document creation
- document get / head / post / delete

Non-2xx responses are raised as the typed errors in
``cloudant_sessions.exceptions``. Nothing is retried here.
"""

import logging
import time
from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from cloudant_sessions.config import Settings
from cloudant_sessions.exceptions import (
    DocumentStoreError,
    TransientServiceError,
    error_for_status,
)

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Operations the session store consumes from a document store client."""

    async def put_database(self, db: str) -> dict[str, Any]: ...

    async def put_design_document(
        self, db: str, ddoc: str, design_document: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def get_document(self, db: str, doc_id: str) -> dict[str, Any]: ...

    async def head_document(self, db: str, doc_id: str) -> str: ...

    async def post_document(self, db: str, document: dict[str, Any]) -> str: ...

    async def delete_document(self, db: str, doc_id: str, rev: str) -> str: ...


def _doc_path(db: str, doc_id: str) -> str:
    return f"/{quote(db, safe='')}/{quote(doc_id, safe='')}"


class CloudantClient:
    """Thin httpx wrapper around the Cloudant HTTP API."""

    def __init__(
        self,
        url: str,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        apikey: Optional[str] = None,
        iam_url: str = "https://iam.cloud.ibm.com/identity/token",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.apikey = apikey
        self.iam_url = iam_url
        self._token: str | None = None
        self._token_exp = 0.0

        auth = None
        if username and password and not apikey:
            auth = httpx.BasicAuth(username, password)

        self._http = httpx.AsyncClient(
            base_url=self.url,
            auth=auth,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudantClient":
        return cls(
            settings.cloudant_url,
            username=settings.cloudant_username if settings.has_basic_auth else None,
            password=settings.cloudant_password if settings.has_basic_auth else None,
            apikey=settings.cloudant_apikey,
            iam_url=settings.cloudant_iam_url,
            timeout=settings.cloudant_timeout,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CloudantClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_token(self) -> str:
        """Exchange the IAM API key for a bearer token, cached until near expiry."""
        if self._token and time.time() < self._token_exp - 60:
            return self._token

        try:
            response = await self._http.post(
                self.iam_url,
                data={
                    "grant_type": "urn:ibm:params:oauth:grant-type:apikey",
                    "apikey": self.apikey,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.TransportError as e:
            raise TransientServiceError("IAM token request failed", str(e)) from e

        if response.status_code != 200:
            raise error_for_status(
                response.status_code, "IAM token request failed", response.text
            )

        data = response.json()
        self._token = data["access_token"]
        self._token_exp = time.time() + data.get("expires_in", 3600)
        logger.debug("Obtained IAM token, expires in %ss", data.get("expires_in"))
        return self._token

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.apikey:
            headers["Authorization"] = f"Bearer {await self._get_token()}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            raise TransientServiceError(f"{method} {path} failed", str(e)) from e

        if response.is_success:
            return response

        reason = None
        if method != "HEAD":
            try:
                body = response.json()
                reason = body.get("reason") or body.get("error")
            except ValueError:
                reason = response.text or None
        raise error_for_status(
            response.status_code, f"{method} {path} returned {response.status_code}", reason
        )

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise DocumentStoreError("Malformed response body", str(e)) from e
        if not isinstance(data, dict):
            raise DocumentStoreError("Malformed response body", f"expected object, got {data!r}")
        return data

    async def put_database(self, db: str) -> dict[str, Any]:
        response = await self._request("PUT", f"/{quote(db, safe='')}")
        return self._json(response)

    async def put_design_document(
        self, db: str, ddoc: str, design_document: dict[str, Any]
    ) -> dict[str, Any]:
        path = f"/{quote(db, safe='')}/_design/{quote(ddoc, safe='')}"
        response = await self._request("PUT", path, json=design_document)
        return self._json(response)

    async def get_document(self, db: str, doc_id: str) -> dict[str, Any]:
        response = await self._request("GET", _doc_path(db, doc_id))
        return self._json(response)

    async def head_document(self, db: str, doc_id: str) -> str:
        """Return the current revision of a document."""
        response = await self._request("HEAD", _doc_path(db, doc_id))
        etag = response.headers.get("etag")
        if not etag:
            raise DocumentStoreError("HEAD response carried no ETag", doc_id)
        return etag.replace('"', "")

    async def post_document(self, db: str, document: dict[str, Any]) -> str:
        """Create or update a document, returning its new revision."""
        response = await self._request("POST", f"/{quote(db, safe='')}", json=document)
        data = self._json(response)
        if "rev" not in data:
            raise DocumentStoreError("Write response carried no revision", str(data))
        return data["rev"]

    async def delete_document(self, db: str, doc_id: str, rev: str) -> str:
        response = await self._request("DELETE", _doc_path(db, doc_id), params={"rev": rev})
        return self._json(response).get("rev", "")
