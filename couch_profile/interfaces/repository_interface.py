"""
Repository interfaces for dependency abstraction.
Defines the persistence extension points the profile service calls back
into, independent of the document store behind them.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IProfileRepository(Protocol):
    """Protocol for profile persistence operations."""

    async def insert(self, attributes: Dict[str, Any]) -> None:
        """
        Store a new profile record.

        Args:
            attributes: Profile fields, including the identifier
        """
        ...

    async def update(self, attributes: Dict[str, Any]) -> None:
        """
        Merge attributes into an existing profile record.

        Creates the record when no record has the given identifier.

        Args:
            attributes: Profile fields, including the identifier
        """
        ...

    async def delete_by_id(self, profile_id: str) -> None:
        """
        Delete a profile record.

        Deleting an unknown identifier is not an error.

        Args:
            profile_id: Identifier of the record
        """
        ...

    async def read(
        self,
        names: Optional[List[str]],
        key: str,
        value: Any
    ) -> List[Dict[str, Any]]:
        """
        Find profile records by attribute.

        Args:
            names: Attribute names to return, or None for all of them
            key: Attribute to match on
            value: Value to match

        Returns:
            Matching records projected onto ``names``
        """
        ...
