"""
Configuration settings for the CouchDB profile store.
Values come from the environment (or a .env file) so deployments can point
the adapter at a different server or database without code changes.
"""
from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
import structlog

logger = structlog.get_logger()


class Settings(BaseSettings):
    """
    CouchDB profile store configuration.

    Every field has a development default; production deployments are
    expected to override at least the URL and the credentials.
    """

    # Application settings
    APP_NAME: str = "CouchDB Profile Store"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # CouchDB connection
    COUCHDB_URL: str = "http://localhost:5984"
    COUCHDB_DATABASE: str = "profiles"
    COUCHDB_USERNAME: Optional[str] = None
    COUCHDB_PASSWORD: Optional[str] = None
    COUCHDB_TIMEOUT: float = Field(default=10.0, gt=0, le=120)
    COUCHDB_MAX_CONNECTIONS: int = Field(default=20, ge=1, le=200)

    # Design document holding the by_<field> secondary index views
    COUCHDB_DESIGN_DOCUMENT: str = "_design/profiles"

    # Raise instead of logging when a stored document cannot be decoded
    # during update/delete
    COUCHDB_STRICT_DECODING: bool = False

    # Profile attributes persisted besides id, linked id, username and
    # password (comma-separated); empty means "store everything"
    PROFILE_ATTRIBUTES: str = ""

    # passlib schemes, first one is used for new hashes
    PASSWORD_SCHEMES: str = "pbkdf2_sha256,bcrypt"

    @field_validator("COUCHDB_URL")
    @classmethod
    def validate_couchdb_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("COUCHDB_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("COUCHDB_DATABASE")
    @classmethod
    def validate_database_name(cls, v: str) -> str:
        if not v or v.startswith("_"):
            raise ValueError("COUCHDB_DATABASE must be a non-empty name not starting with '_'")
        return v

    @field_validator("COUCHDB_DESIGN_DOCUMENT")
    @classmethod
    def validate_design_document(cls, v: str) -> str:
        if not v.startswith("_design/") or v == "_design/":
            raise ValueError("COUCHDB_DESIGN_DOCUMENT must look like '_design/<name>'")
        return v

    @field_validator("PASSWORD_SCHEMES")
    @classmethod
    def validate_password_schemes(cls, v: str) -> str:
        if not _split_csv(v):
            raise ValueError("PASSWORD_SCHEMES must name at least one passlib scheme")
        return v

    @property
    def profile_attributes(self) -> List[str]:
        """Parse stored profile attribute names from string."""
        return _split_csv(self.PROFILE_ATTRIBUTES)

    @property
    def password_schemes(self) -> List[str]:
        """Parse passlib scheme names from string."""
        return _split_csv(self.PASSWORD_SCHEMES)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
        "validate_assignment": True,
    }


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    logger.debug(
        "Settings loaded",
        couchdb_url=settings.COUCHDB_URL,
        database=settings.COUCHDB_DATABASE,
        design_document=settings.COUCHDB_DESIGN_DOCUMENT,
        strict_decoding=settings.COUCHDB_STRICT_DECODING,
    )
    return settings
