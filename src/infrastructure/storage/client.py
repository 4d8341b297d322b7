"""
Object storage client for uploaded videos.

Wraps an Azure Blob Storage container. The API only ever asks two things of
the object store: does a blob exist, and delete it if it does. Uploads and
downloads bypass the API entirely via SAS URLs (see sas.py).

Mock mode keeps blobs in memory, enabling API testing without
provisioning a storage account.
"""

import logging
from dataclasses import dataclass

from azure.core.exceptions import AzureError, ResourceNotFoundError

from ...core.videos.lifecycle import ObjectStore

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


class StorageConfigurationError(StorageError):
    """Raised when the storage account credentials are absent or malformed."""
    pass


class ObjectStoreError(StorageError):
    """Raised when a blob call fails for a reason other than not-found."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for an Azure storage account.

    Using a dataclass instead of raw parameters means:
    - Configuration is explicit and documented
    - Easy to validate at construction time
    - Simple to create test configurations
    """
    account_name: str
    account_key: str
    container_name: str = "videos"

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"


def create_blob_service_client(config: StorageConfig):
    """
    Build a BlobServiceClient authenticated with the account key.

    We import azure.storage.blob here (not at module level) because
    mock mode never opens a connection.
    """
    from azure.storage.blob import BlobServiceClient

    if not config.account_name or not config.account_key:
        raise StorageConfigurationError("Storage account name and key are required")

    client = BlobServiceClient(
        account_url=config.account_url,
        credential={
            "account_name": config.account_name,
            "account_key": config.account_key,
        },
    )

    logger.info(
        "Initialized blob service client",
        extra={
            "account": config.account_name,
            "container": config.container_name,
        }
    )

    return client


class BlobObjectStore:
    """
    Blob existence and deletion over one container.

    Takes a ContainerClient so the expensive service client can be shared
    across requests while each request gets its own lightweight wrapper.
    """

    def __init__(self, container_client) -> None:
        self._container = container_client

    def exists(self, key: str) -> bool:
        try:
            return self._container.get_blob_client(key).exists()
        except AzureError as e:
            logger.error(
                "Failed to check blob existence",
                extra={"blob": key, "error": str(e)}
            )
            raise ObjectStoreError(f"Existence check failed: {e}") from e

    def delete_if_exists(self, key: str) -> bool:
        """
        Delete the blob and its snapshots.

        Not-found is success with False, so repeated deletes are safe.
        """
        try:
            self._container.get_blob_client(key).delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            logger.debug("Blob already absent", extra={"blob": key})
            return False
        except AzureError as e:
            logger.error(
                "Failed to delete blob",
                extra={"blob": key, "error": str(e)}
            )
            raise ObjectStoreError(f"Delete failed: {e}") from e

        logger.info("Deleted blob", extra={"blob": key})
        return True


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockObjectStore:
    """
    In-memory blob store for local development.

    This mock enables testing the full API flow without provisioning
    a storage account. `put` stands in for the client's direct PUT to
    the SAS URL.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self) -> None:
        # {blob name: bytes}
        self._blobs: dict[str, bytes] = {}
        logger.info("Initialized mock object store (in-memory)")

    def put(self, key: str, data: bytes) -> None:
        """Simulate a completed client upload."""
        self._blobs[key] = data
        logger.debug(
            "Stored blob in mock storage",
            extra={"blob": key, "size_bytes": len(data)}
        )

    def exists(self, key: str) -> bool:
        return key in self._blobs

    def delete_if_exists(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    container_client=None,
    mock_mode: bool = False,
) -> ObjectStore:
    """
    Create object store based on configuration.

    Args:
        container_client: Azure ContainerClient (required if not mock_mode)
        mock_mode: If True, return an in-memory store

    Returns:
        ObjectStore implementation (Blob or Mock)
    """
    if mock_mode:
        return MockObjectStore()

    if container_client is None:
        raise ValueError("container_client is required when not in mock mode")

    return BlobObjectStore(container_client)
