"""
Wiring of the profile store components.
Builds the connector, repository, encoder and service from configuration
and owns the connector's lifetime.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import structlog

from .core.config import Settings, get_settings
from .core.couchdb import CouchDBConnector
from .core.logging import configure_logging
from .core.views import ensure_profile_views
from .repositories.couch_profile_repository import CouchProfileRepository
from .services.password_service import PasslibPasswordEncoder
from .services.profile_service import ProfileService

logger = structlog.get_logger()


def build_profile_service(
    connector: CouchDBConnector,
    settings: Optional[Settings] = None
) -> ProfileService:
    """Assemble a profile service on top of an existing connector."""
    settings = settings or get_settings()
    repository = CouchProfileRepository.from_settings(connector, settings)
    encoder = PasslibPasswordEncoder(schemes=settings.password_schemes)
    return ProfileService.from_settings(repository, encoder, settings)


@asynccontextmanager
async def profile_service_lifespan(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    provision: bool = False,
    setup_logging: bool = False
) -> AsyncIterator[ProfileService]:
    """
    Open a profile service and close its connector on exit.

    Args:
        settings: Configuration, defaults to the cached settings
        transport: Optional httpx transport (used by tests)
        provision: Create the database and the username/linked id views first
        setup_logging: Configure structlog from settings.DEBUG before starting
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(settings.DEBUG)
    logger.info(
        "Starting profile store",
        app=settings.APP_NAME,
        version=settings.VERSION,
        couchdb_url=settings.COUCHDB_URL,
        database=settings.COUCHDB_DATABASE,
    )
    connector = CouchDBConnector.from_settings(settings, transport=transport)
    try:
        service = build_profile_service(connector, settings)
        if provision:
            await connector.create_database()
            await ensure_profile_views(
                connector,
                [service.username_attribute, service.linked_id_attribute],
                settings.COUCHDB_DESIGN_DOCUMENT,
            )
        yield service
    finally:
        logger.info("Shutting down profile store")
        await connector.aclose()
