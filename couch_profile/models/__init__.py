"""Profile models."""

from .profile import UserProfile

__all__ = ["UserProfile"]
