"""
Pytest configuration and fixtures for profile store testing.
Provides an in-memory CouchDB, connectors and services with proper cleanup.
"""
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from passlib.context import CryptContext

from couch_profile.core.config import Settings
from couch_profile.core.couchdb import CouchDBConnector, ViewResult
from couch_profile.core.views import ensure_profile_views
from couch_profile.repositories.couch_profile_repository import CouchProfileRepository
from couch_profile.services.password_service import PasslibPasswordEncoder
from couch_profile.services.profile_service import ProfileService
from tests.fake_couchdb import FakeCouchDB

TEST_COUCHDB_URL = "http://couchdb.test:5984"
TEST_DATABASE = "profiles"
TEST_DESIGN_DOCUMENT = "_design/profiles"


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at the fake server."""
    return Settings(
        COUCHDB_URL=TEST_COUCHDB_URL,
        COUCHDB_DATABASE=TEST_DATABASE,
        COUCHDB_DESIGN_DOCUMENT=TEST_DESIGN_DOCUMENT,
        PASSWORD_SCHEMES="pbkdf2_sha256",
    )


@pytest.fixture
def fake_couchdb() -> FakeCouchDB:
    """Create an empty in-memory CouchDB."""
    return FakeCouchDB(database=TEST_DATABASE)


@pytest_asyncio.fixture
async def connector(fake_couchdb, test_settings) -> AsyncGenerator[CouchDBConnector, None]:
    """Connector talking to the in-memory CouchDB."""
    connector = CouchDBConnector.from_settings(test_settings, transport=fake_couchdb.transport)
    yield connector
    await connector.aclose()


@pytest_asyncio.fixture
async def provisioned_connector(connector) -> CouchDBConnector:
    """Connector whose database has the username, linked id and email views."""
    await ensure_profile_views(connector, ["username", "linkedid", "email"], TEST_DESIGN_DOCUMENT)
    return connector


@pytest.fixture
def repository(provisioned_connector) -> CouchProfileRepository:
    return CouchProfileRepository(provisioned_connector, design_doc_id=TEST_DESIGN_DOCUMENT)


@pytest.fixture
def password_encoder() -> PasslibPasswordEncoder:
    """Fast pbkdf2 encoder so tests do not pay for bcrypt rounds."""
    return PasslibPasswordEncoder(
        context=CryptContext(schemes=["pbkdf2_sha256"], pbkdf2_sha256__default_rounds=1000)
    )


@pytest.fixture
def profile_service(repository, password_encoder) -> ProfileService:
    return ProfileService(repository, password_encoder)


@pytest.fixture
def mock_connector() -> AsyncMock:
    """Mock document store for repository unit tests."""
    connector = AsyncMock()
    connector.query_view.return_value = ViewResult(rows=[])
    return connector
