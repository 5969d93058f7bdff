"""
Exception hierarchy for the profile store.
"""
from typing import Optional


class CouchProfileError(Exception):
    """Base exception for the profile store"""
    pass


class StoreError(CouchProfileError):
    """Raised when a CouchDB request fails"""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class DocumentNotFoundError(StoreError):
    """Raised when the requested document or view does not exist"""
    pass


class DocumentConflictError(StoreError):
    """Raised when a write is rejected because of a stale or missing revision"""
    pass


class DocumentDecodeError(CouchProfileError, ValueError):
    """Raised when a stored document is not a JSON object"""
    pass


class InvalidDocumentIdError(CouchProfileError, ValueError):
    """Raised when an id would address something other than a document"""
    pass


class ProfileServiceConfigurationError(CouchProfileError):
    """Raised when the profile service is missing a collaborator"""
    pass


class CredentialsError(CouchProfileError):
    """Base exception for failed username/password validation"""
    pass


class AccountNotFoundError(CredentialsError):
    """Raised when no account matches the username"""
    pass


class MultipleAccountsFoundError(CredentialsError):
    """Raised when several accounts share the username"""
    pass


class BadCredentialsError(CredentialsError):
    """Raised when the password does not match"""
    pass
