"""
JSON codec for stored profile documents.
Turns raw CouchDB response bodies into plain attribute dictionaries.
"""
import json
from typing import Any, Dict, Mapping, Union

from .exceptions import DocumentDecodeError

Stream = Union[bytes, bytearray, str, Mapping[str, Any]]

REVISION_FIELD = "_rev"


class JsonCodec:
    """Decodes document bodies into string-keyed mappings."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def decode_mapping(self, stream: Stream) -> Dict[str, Any]:
        """
        Decode a document body into a dictionary.

        Args:
            stream: Raw body (bytes or str) or an already decoded mapping

        Returns:
            A new dictionary holding the document fields

        Raises:
            DocumentDecodeError: If the body is not a JSON object
        """
        if isinstance(stream, Mapping):
            return dict(stream)

        if isinstance(stream, (bytes, bytearray)):
            try:
                stream = stream.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise DocumentDecodeError(f"Document body is not valid {self.encoding}: {e}") from e

        if not isinstance(stream, str):
            raise DocumentDecodeError(f"Cannot decode document from {type(stream).__name__}")

        try:
            document = json.loads(stream)
        except json.JSONDecodeError as e:
            raise DocumentDecodeError(f"Document body is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise DocumentDecodeError(
                f"Expected a JSON object, got {type(document).__name__}"
            )
        return document

    def read_revision(self, stream: Stream) -> str:
        """Decode a document body and return its revision token."""
        document = self.decode_mapping(stream)
        revision = document.get(REVISION_FIELD)
        if not isinstance(revision, str) or not revision:
            raise DocumentDecodeError("Document has no revision")
        return revision

    def __repr__(self) -> str:
        return f"JsonCodec(encoding={self.encoding!r})"
