"""
CouchDB connection management for the profile store.
Implements the document operations the repository relies on over an async
httpx client with connection pooling.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog

from .config import Settings, get_settings
from .exceptions import DocumentConflictError, DocumentNotFoundError, InvalidDocumentIdError, StoreError

logger = structlog.get_logger()

DESIGN_PREFIX = "_design/"
LOCAL_PREFIX = "_local/"


@dataclass
class ViewRow:
    """Single row of a view query; value is left undecoded."""
    id: Optional[str]
    key: Any
    value: Any


@dataclass
class ViewResult:
    """Rows returned by a view query."""
    rows: List[ViewRow] = field(default_factory=list)
    total_rows: Optional[int] = None
    offset: Optional[int] = None

    def __len__(self) -> int:
        return len(self.rows)


class CouchDBConnector:
    """Async connector bound to a single CouchDB database."""

    def __init__(
        self,
        base_url: str,
        database: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0,
        max_connections: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.database = database
        self.http_client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=(username, password or "") if username else None,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "CouchDBConnector":
        """Build a connector from configuration."""
        settings = settings or get_settings()
        return cls(
            base_url=settings.COUCHDB_URL,
            database=settings.COUCHDB_DATABASE,
            username=settings.COUCHDB_USERNAME,
            password=settings.COUCHDB_PASSWORD,
            timeout=settings.COUCHDB_TIMEOUT,
            max_connections=settings.COUCHDB_MAX_CONNECTIONS,
            transport=transport,
        )

    async def __aenter__(self) -> "CouchDBConnector":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.http_client.aclose()
        logger.debug("CouchDB connector closed", database=self.database)

    async def create_database(self) -> bool:
        """
        Create the database if it does not exist yet.

        Returns:
            True if the database was created, False if it already existed
        """
        response = await self._request("PUT", self._database_path())
        if response.status_code == 412:
            return False
        self._raise_for_status(response, self.database)
        logger.info("CouchDB database created", database=self.database)
        return True

    async def create(self, document: Dict[str, Any]) -> None:
        """
        Store a new document.

        The assigned id and revision are written back into ``document``.
        """
        response = await self._request("POST", self._database_path(), json=document)
        self._raise_for_status(response, document.get("_id"))
        result = response.json()
        document["_id"] = result["id"]
        document["_rev"] = result["rev"]

    async def get_as_stream(self, doc_id: str) -> bytes:
        """
        Fetch the raw JSON body of a document.

        Raises:
            DocumentNotFoundError: If no document has this id
        """
        response = await self._request("GET", self._document_path(doc_id))
        self._raise_for_status(response, doc_id)
        return response.content

    async def update(self, document: Dict[str, Any]) -> None:
        """
        Write a new revision of an existing document.

        ``document`` must carry ``_id`` and the current ``_rev``; the new
        revision is written back into it.
        """
        doc_id = document.get("_id")
        if not doc_id:
            raise ValueError("Cannot update a document without an _id")
        response = await self._request("PUT", self._document_path(doc_id), json=document)
        self._raise_for_status(response, doc_id)
        document["_rev"] = response.json()["rev"]

    async def delete(self, doc_id: str, rev: str) -> str:
        """Delete a document revision and return the tombstone revision."""
        response = await self._request("DELETE", self._document_path(doc_id), params={"rev": rev})
        self._raise_for_status(response, doc_id)
        return response.json()["rev"]

    async def query_view(self, design_doc_id: str, view_name: str, key: Any) -> ViewResult:
        """
        Query a view for a single key.

        Args:
            design_doc_id: Design document id, e.g. ``_design/profiles``
            view_name: View name inside the design document
            key: Key to look up, JSON encoded into the query string

        Returns:
            View rows with their values left as returned by the server
        """
        path = f"{self._document_path(design_doc_id)}/_view/{quote(view_name, safe='')}"
        response = await self._request("GET", path, params={"key": json.dumps(key)})
        self._raise_for_status(response, f"{design_doc_id}/_view/{view_name}")
        payload = response.json()
        rows = [
            ViewRow(id=row.get("id"), key=row.get("key"), value=row.get("value"))
            for row in payload.get("rows", [])
        ]
        return ViewResult(rows=rows, total_rows=payload.get("total_rows"), offset=payload.get("offset"))

    async def put_design_document(self, design_doc_id: str, views: Dict[str, Dict[str, str]]) -> str:
        """
        Create or extend a design document with the given views.

        Views already present in the stored design document are kept unless
        redefined here.

        Returns:
            The new revision of the design document
        """
        if not design_doc_id.startswith(DESIGN_PREFIX):
            raise ValueError(f"Design document id must start with {DESIGN_PREFIX!r}")

        document: Dict[str, Any] = {"_id": design_doc_id, "language": "javascript", "views": {}}
        try:
            existing = json.loads(await self.get_as_stream(design_doc_id))
            document.update(existing)
            document["views"] = dict(existing.get("views") or {})
        except DocumentNotFoundError:
            logger.debug("Design document not found, creating it", design_doc_id=design_doc_id)

        document["views"].update(views)
        response = await self._request("PUT", self._document_path(design_doc_id), json=document)
        self._raise_for_status(response, design_doc_id)
        rev = response.json()["rev"]
        logger.info("Design document stored", design_doc_id=design_doc_id, views=sorted(document["views"]))
        return rev

    def _database_path(self) -> str:
        return f"/{quote(self.database, safe='')}"

    def _document_path(self, doc_id: str) -> str:
        # other "_" names are database endpoints (_all_docs, _changes, ...)
        if not isinstance(doc_id, str) or doc_id in ("", DESIGN_PREFIX, LOCAL_PREFIX):
            raise InvalidDocumentIdError(f"Invalid document id: {doc_id!r}")
        prefix = next((p for p in (DESIGN_PREFIX, LOCAL_PREFIX) if doc_id.startswith(p)), "")
        if not prefix and doc_id.startswith("_"):
            raise InvalidDocumentIdError(f"Invalid document id: {doc_id!r}")
        return f"{self._database_path()}/{prefix}{quote(doc_id[len(prefix):], safe='')}"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.http_client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("CouchDB request failed", method=method, path=path, error=str(e))
            raise StoreError(f"CouchDB request {method} {path} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, target: Optional[str]) -> None:
        if response.is_success:
            return

        error, reason = None, None
        try:
            body = response.json()
            if isinstance(body, dict):
                error, reason = body.get("error"), body.get("reason")
        except ValueError:
            reason = response.text or None

        message = f"CouchDB returned {response.status_code} for {target}: {error or 'error'} ({reason})"
        if response.status_code == 404:
            raise DocumentNotFoundError(message, status_code=404, reason=reason)
        if response.status_code == 409:
            raise DocumentConflictError(message, status_code=409, reason=reason)
        raise StoreError(message, status_code=response.status_code, reason=reason)

    def __repr__(self) -> str:
        return f"CouchDBConnector(base_url={self.base_url!r}, database={self.database!r})"
