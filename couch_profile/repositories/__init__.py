"""
Repository implementations following the Repository pattern.
Provides the profile persistence layer on top of CouchDB.
"""

from .couch_profile_repository import CouchProfileRepository

__all__ = [
    "CouchProfileRepository"
]
