"""Test data factories for profile store testing."""

from .profile_factory import ProfileAttributesFactory, UserProfileFactory

__all__ = [
    "ProfileAttributesFactory",
    "UserProfileFactory",
]
