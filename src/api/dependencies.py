"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be mocked for testing
- Configuration is centralized
- Resource lifecycle (connections, clients) is managed properly

The Azure clients are expensive (connection pools, credential policies),
so each is built once per process on first use and closed at shutdown.
Route handlers are sync and run in a thread pool, so first use can race;
a lock guarantees a single construction.

A dependency that resolves to None means the backing service is not
configured. The lifecycle coordinator turns that into a 500
"not configured" response for the operations that need it.
"""

import logging
import threading
from contextlib import ExitStack
from typing import Annotated, Optional

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.videos.errors import NotConfiguredError
from ..core.videos.lifecycle import (
    METADATA_NOT_CONFIGURED,
    STORAGE_NOT_CONFIGURED,
    CredentialIssuer,
    MetadataStore,
    ObjectStore,
    VideoLifecycle,
)
from ..infrastructure.cosmos.client import (
    CosmosConfig,
    CosmosConnectionError,
    MockCosmosContainer,
    create_cosmos_client,
    get_container,
)
from ..infrastructure.cosmos.repositories.videos import VideoRepository
from ..infrastructure.storage.client import (
    MockObjectStore,
    StorageConfig,
    StorageConfigurationError,
    create_blob_service_client,
    create_object_store,
)
from ..infrastructure.storage.sas import MockCredentialIssuer, SasCredentialIssuer

logger = logging.getLogger(__name__)

# Process-wide client handles, built lazily under _client_lock
_client_lock = threading.Lock()
_client_stack = ExitStack()
_blob_service_client = None
_cosmos_client = None

# Global mock instances (shared across requests so data persists)
_mock_object_store: Optional[MockObjectStore] = None
_mock_cosmos_container: Optional[MockCosmosContainer] = None


# ---------------------------------------------------------------------------
# Client Lifecycle
# ---------------------------------------------------------------------------

def _storage_config(settings: Settings) -> StorageConfig:
    return StorageConfig(
        account_name=settings.storage_account_name,
        account_key=settings.storage_account_key,
        container_name=settings.storage_container_name,
    )


def _cosmos_config(settings: Settings) -> CosmosConfig:
    return CosmosConfig(
        connection_string=settings.cosmos_db_connection,
        database_name=settings.cosmos_database_name,
        container_name=settings.cosmos_container_name,
    )


def get_blob_service_client(settings: Settings):
    """Return the shared BlobServiceClient, building it on first call."""
    global _blob_service_client

    if _blob_service_client is None:
        with _client_lock:
            if _blob_service_client is None:
                client = create_blob_service_client(_storage_config(settings))
                _blob_service_client = _client_stack.enter_context(client)
    return _blob_service_client


def get_cosmos_client(settings: Settings):
    """Return the shared CosmosClient, building it on first call."""
    global _cosmos_client

    if _cosmos_client is None:
        with _client_lock:
            if _cosmos_client is None:
                client = create_cosmos_client(_cosmos_config(settings))
                _cosmos_client = _client_stack.enter_context(client)
    return _cosmos_client


def get_mock_object_store() -> MockObjectStore:
    global _mock_object_store

    if _mock_object_store is None:
        with _client_lock:
            if _mock_object_store is None:
                _mock_object_store = create_object_store(mock_mode=True)
                logger.info("Created shared mock object store")
    return _mock_object_store


def get_mock_cosmos_container() -> MockCosmosContainer:
    global _mock_cosmos_container

    if _mock_cosmos_container is None:
        with _client_lock:
            if _mock_cosmos_container is None:
                _mock_cosmos_container = MockCosmosContainer()
                logger.info("Created shared mock Cosmos container")
    return _mock_cosmos_container


def close_clients() -> None:
    """
    Close every cached client and forget the mocks.

    Called from the application lifespan on shutdown, and by tests
    to start from a clean slate.
    """
    global _blob_service_client, _cosmos_client, _mock_object_store, _mock_cosmos_container

    with _client_lock:
        try:
            _client_stack.close()
        finally:
            _blob_service_client = None
            _cosmos_client = None
            _mock_object_store = None
            _mock_cosmos_container = None

    logger.info("Closed shared service clients")


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_video_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[MetadataStore]:
    """
    Provide VideoRepository over the metadata container.

    The repository itself is a thin per-request wrapper; the Cosmos
    client underneath is shared.
    """
    if settings.cosmos_mock_mode:
        logger.debug("Using shared mock Cosmos container")
        return VideoRepository(get_mock_cosmos_container())

    if not settings.cosmos_configured:
        return None

    try:
        client = get_cosmos_client(settings)
    except CosmosConnectionError as e:
        logger.error("Cosmos client unavailable", extra={"error": str(e)})
        raise NotConfiguredError(METADATA_NOT_CONFIGURED) from e

    return VideoRepository(get_container(client, _cosmos_config(settings)))


def get_object_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[ObjectStore]:
    """
    Provide blob existence/delete over the videos container.

    Returns either the Azure-backed store or the shared mock based on settings.
    """
    if settings.storage_mock_mode:
        logger.debug("Using shared mock object store")
        return get_mock_object_store()

    if not settings.storage_configured:
        return None

    try:
        client = get_blob_service_client(settings)
    except StorageConfigurationError as e:
        logger.error("Blob client unavailable", extra={"error": str(e)})
        raise NotConfiguredError(STORAGE_NOT_CONFIGURED) from e

    container_client = client.get_container_client(settings.storage_container_name)
    return create_object_store(container_client=container_client)


def get_credential_issuer(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[CredentialIssuer]:
    """Provide the SAS signer. Pure computation, so built per request."""
    if settings.storage_mock_mode:
        return MockCredentialIssuer(container_name=settings.storage_container_name)

    if not settings.storage_configured:
        return None

    return SasCredentialIssuer(
        account_name=settings.storage_account_name,
        account_key=settings.storage_account_key,
        container_name=settings.storage_container_name,
    )


def get_video_lifecycle(
    settings: Annotated[Settings, Depends(get_settings)],
    repository: Annotated[Optional[MetadataStore], Depends(get_video_repository)],
    object_store: Annotated[Optional[ObjectStore], Depends(get_object_store)],
    credential_issuer: Annotated[Optional[CredentialIssuer], Depends(get_credential_issuer)],
) -> VideoLifecycle:
    """
    Provide the lifecycle coordinator wired to whatever is configured.

    The coordinator is stateless, so we create a new instance per request.
    """
    return VideoLifecycle(
        repository=repository,
        object_store=object_store,
        credential_issuer=credential_issuer,
        upload_ttl_minutes=settings.upload_sas_ttl_minutes,
        download_ttl_minutes=settings.download_sas_ttl_minutes,
        verify_blob_on_confirm=settings.verify_blob_on_confirm,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_settings)]
VideoLifecycleDep = Annotated[VideoLifecycle, Depends(get_video_lifecycle)]
