"""
Document store interface for dependency abstraction.
Defines the CouchDB operations the profile repository relies on so the
repository can be tested against any implementation.
"""

from typing import Any, Dict, Protocol, runtime_checkable

from ..core.couchdb import ViewResult


@runtime_checkable
class IDocumentStore(Protocol):
    """Protocol for document store operations."""

    async def create(self, document: Dict[str, Any]) -> None:
        """
        Store a new document.

        Args:
            document: Document fields; receives the assigned _id and _rev
        """
        ...

    async def get_as_stream(self, doc_id: str) -> bytes:
        """
        Fetch the raw body of a document.

        Args:
            doc_id: Document id

        Returns:
            Undecoded JSON body

        Raises:
            DocumentNotFoundError: If no document has this id
        """
        ...

    async def update(self, document: Dict[str, Any]) -> None:
        """
        Write a new revision of a document.

        Args:
            document: Document carrying _id and its current _rev
        """
        ...

    async def delete(self, doc_id: str, rev: str) -> str:
        """
        Delete a document revision.

        Args:
            doc_id: Document id
            rev: Current revision of the document

        Returns:
            Revision of the deletion tombstone
        """
        ...

    async def query_view(self, design_doc_id: str, view_name: str, key: Any) -> ViewResult:
        """
        Query a view for a single key.

        Args:
            design_doc_id: Design document id
            view_name: View name
            key: Key to match

        Returns:
            Matching rows with undecoded values
        """
        ...

    async def put_design_document(self, design_doc_id: str, views: Dict[str, Dict[str, str]]) -> str:
        """
        Create or extend a design document.

        Args:
            design_doc_id: Design document id
            views: View definitions keyed by view name

        Returns:
            New revision of the design document
        """
        ...
