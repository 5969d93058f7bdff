"""
Interface definitions for dependency abstractions.
These Protocol classes define the contracts between the profile service,
its repository and the document store.
"""

from .password_interface import IPasswordEncoder
from .repository_interface import IProfileRepository
from .store_interface import IDocumentStore

__all__ = [
    "IPasswordEncoder",
    "IProfileRepository",
    "IDocumentStore",
]
