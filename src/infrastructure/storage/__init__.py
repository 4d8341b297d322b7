"""
Object storage integration for uploaded videos.

Azure Blob Storage for existence checks, deletes, and SAS URL signing.
Includes mock mode for local development without credentials.
"""

from .client import (
    BlobObjectStore,
    MockObjectStore,
    ObjectStoreError,
    StorageConfig,
    StorageConfigurationError,
    StorageError,
    create_blob_service_client,
    create_object_store,
)
from .sas import MockCredentialIssuer, SasCredentialIssuer

__all__ = [
    "BlobObjectStore",
    "MockCredentialIssuer",
    "MockObjectStore",
    "ObjectStoreError",
    "SasCredentialIssuer",
    "StorageConfig",
    "StorageConfigurationError",
    "StorageError",
    "create_blob_service_client",
    "create_object_store",
]
