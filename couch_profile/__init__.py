"""
CouchDB-backed storage for user profiles and credentials.
"""

from .container import build_profile_service, profile_service_lifespan
from .core.config import Settings, get_settings
from .core.couchdb import CouchDBConnector
from .models.profile import UserProfile
from .repositories.couch_profile_repository import CouchProfileRepository
from .services.password_service import PasslibPasswordEncoder
from .services.profile_service import ProfileService

__version__ = "1.0.0"

__all__ = [
    "build_profile_service",
    "profile_service_lifespan",
    "Settings",
    "get_settings",
    "CouchDBConnector",
    "UserProfile",
    "CouchProfileRepository",
    "PasslibPasswordEncoder",
    "ProfileService",
]
