"""
Service layer: profile management and password encoding.
"""

from .password_service import PasslibPasswordEncoder
from .profile_service import ProfileService

__all__ = [
    "PasslibPasswordEncoder",
    "ProfileService",
]
