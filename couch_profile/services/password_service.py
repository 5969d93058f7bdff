"""
Password encoder backed by passlib.
Hashing itself is entirely passlib's; this class only adapts CryptContext to
the encoder interface the profile service expects.
"""
from typing import List, Optional

from passlib.context import CryptContext
import structlog

from ..core.config import get_settings
from ..interfaces.password_interface import IPasswordEncoder

logger = structlog.get_logger()


class PasslibPasswordEncoder(IPasswordEncoder):
    """Handles password hashing and verification through a CryptContext"""

    def __init__(self, schemes: Optional[List[str]] = None, context: Optional[CryptContext] = None):
        if context is None:
            schemes = schemes or get_settings().password_schemes
            context = CryptContext(schemes=schemes, deprecated="auto")
        self.context = context

    def encode(self, password: str) -> str:
        """Generate password hash"""
        return self.context.hash(password)

    def matches(self, plain_password: str, encoded_password: str) -> bool:
        """Verify a password against its hash"""
        if not encoded_password:
            return False
        try:
            return self.context.verify(plain_password, encoded_password)
        except (ValueError, TypeError) as e:
            # unknown, malformed or non-string hash
            logger.warning("Password hash could not be verified", error=str(e))
            return False

    def needs_update(self, encoded_password: str) -> bool:
        """True if the hash uses a deprecated scheme or settings"""
        return self.context.needs_update(encoded_password)

    def __repr__(self) -> str:
        return f"PasslibPasswordEncoder(schemes={list(self.context.schemes())!r})"
