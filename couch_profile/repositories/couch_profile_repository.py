"""
CouchDB profile repository following the Repository pattern.
Stores profile records as JSON documents and projects them back into
attribute dictionaries.
"""

from typing import Any, Dict, List, Optional

import structlog

from ..core.config import Settings, get_settings
from ..core.exceptions import DocumentDecodeError, DocumentNotFoundError, InvalidDocumentIdError
from ..core.serialization import JsonCodec
from ..core.views import view_name_for
from ..interfaces.repository_interface import IProfileRepository
from ..interfaces.store_interface import IDocumentStore

logger = structlog.get_logger()

COUCH_ID = "_id"
COUCH_REV = "_rev"
DEFAULT_DESIGN_DOCUMENT = "_design/profiles"


class CouchProfileRepository(IProfileRepository):
    """Repository for profile records kept in a CouchDB database."""

    def __init__(
        self,
        connector: IDocumentStore,
        codec: Optional[JsonCodec] = None,
        design_doc_id: str = DEFAULT_DESIGN_DOCUMENT,
        strict_decoding: bool = False
    ):
        self.connector = connector
        self.codec = codec or JsonCodec()
        self.design_doc_id = design_doc_id
        self.strict_decoding = strict_decoding

    @classmethod
    def from_settings(
        cls,
        connector: IDocumentStore,
        settings: Optional[Settings] = None
    ) -> "CouchProfileRepository":
        settings = settings or get_settings()
        return cls(
            connector=connector,
            design_doc_id=settings.COUCHDB_DESIGN_DOCUMENT,
            strict_decoding=settings.COUCHDB_STRICT_DECODING,
        )

    async def insert(self, attributes: Dict[str, Any]) -> None:
        """
        Store a new profile document.

        Store failures (including an id conflict) are raised to the caller.
        """
        logger.debug("Insert doc", attributes=attributes)
        await self.connector.create(attributes)

    async def update(self, attributes: Dict[str, Any]) -> None:
        """
        Merge attributes over the stored document.

        Falls back to an insert when no document has the given id. A stored
        document that cannot be decoded is logged and left untouched unless
        strict decoding is enabled.
        """
        doc_id = attributes.get(COUCH_ID)
        if not doc_id:
            raise ValueError("Cannot update a profile without an _id")
        try:
            stream = await self.connector.get_as_stream(doc_id)
            document = self.codec.decode_mapping(stream)
            stored_rev = document.get(COUCH_REV)
            document.update(attributes)
            # writes are always based on the revision just read
            if stored_rev is not None:
                document[COUCH_REV] = stored_rev
            await self.connector.update(document)
        except DocumentNotFoundError:
            logger.debug("Insert doc (not found by update)", attributes=attributes)
            await self.connector.create(attributes)
            return
        except DocumentDecodeError as e:
            self._decode_failed("update", doc_id, e)
            return
        logger.debug("Updating id", id=doc_id, attributes=attributes)

    async def delete_by_id(self, profile_id: str) -> None:
        """Delete a profile document; unknown ids are ignored."""
        logger.debug("Delete id", id=profile_id)
        try:
            stream = await self.connector.get_as_stream(profile_id)
            rev = self.codec.read_revision(stream)
            await self.connector.delete(profile_id, rev)
        except (DocumentNotFoundError, InvalidDocumentIdError):
            logger.debug("id is not in the database", id=profile_id)
        except DocumentDecodeError as e:
            self._decode_failed("delete", profile_id, e)

    async def read(
        self,
        names: Optional[List[str]],
        key: str,
        value: Any
    ) -> List[Dict[str, Any]]:
        """
        Find profile documents by attribute.

        Lookups by document id fetch the document directly; any other key
        queries the ``by_<key>`` view of the design document, which must
        exist. Rows that cannot be decoded are skipped.

        Args:
            names: Attribute names to keep, or None to keep everything
            key: Attribute to match on
            value: Value to match

        Returns:
            Projected documents, empty when nothing matches
        """
        logger.debug("Reading key / value", key=key, value=value)
        list_attributes: List[Dict[str, Any]] = []

        if key == COUCH_ID:
            try:
                stream = await self.connector.get_as_stream(value)
                document = self.codec.decode_mapping(stream)
                list_attributes.append(self._populate_attributes(document, names))
            except (DocumentNotFoundError, InvalidDocumentIdError):
                logger.debug("Document id not found", id=value)
            except DocumentDecodeError as e:
                logger.error("Unexpected CouchDB document decode error", id=value, error=str(e))
        else:
            result = await self.connector.query_view(self.design_doc_id, view_name_for(key), value)
            for row in result.rows:
                try:
                    document = self.codec.decode_mapping(row.value)
                except DocumentDecodeError as e:
                    logger.error(
                        "Unexpected CouchDB view row decode error",
                        view=view_name_for(key),
                        row_id=row.id,
                        error=str(e)
                    )
                    continue
                list_attributes.append(self._populate_attributes(document, names))

        logger.debug("Found", count=len(list_attributes), documents=list_attributes)
        return list_attributes

    @staticmethod
    def _populate_attributes(
        row_attributes: Dict[str, Any],
        names: Optional[List[str]]
    ) -> Dict[str, Any]:
        """Keep the entries listed in ``names``, or all of them if it is None."""
        if names is None:
            return dict(row_attributes)
        wanted = set(names)
        return {name: value for name, value in row_attributes.items() if name in wanted}

    def _decode_failed(self, operation: str, doc_id: Optional[str], error: DocumentDecodeError) -> None:
        logger.error(
            "Unexpected CouchDB document decode error",
            operation=operation,
            id=doc_id,
            error=str(error)
        )
        if self.strict_decoding:
            raise error

    def __repr__(self) -> str:
        return (
            f"CouchProfileRepository(connector={self.connector!r}, "
            f"design_doc_id={self.design_doc_id!r}, strict_decoding={self.strict_decoding})"
        )
