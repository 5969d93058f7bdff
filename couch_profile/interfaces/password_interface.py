"""
Password encoder interface for dependency abstraction.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPasswordEncoder(Protocol):
    """Protocol for password hashing operations."""

    def encode(self, password: str) -> str:
        """
        Hash a plaintext password.

        Args:
            password: Plaintext password

        Returns:
            Encoded hash suitable for storage
        """
        ...

    def matches(self, plain_password: str, encoded_password: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Args:
            plain_password: Plaintext password
            encoded_password: Stored hash

        Returns:
            True if the password matches, False otherwise
        """
        ...

    def needs_update(self, encoded_password: str) -> bool:
        """
        Check whether a stored hash should be re-encoded.

        Args:
            encoded_password: Stored hash

        Returns:
            True if the hash uses a deprecated scheme or settings
        """
        ...
