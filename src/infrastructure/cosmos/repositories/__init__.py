"""
Repository pattern implementations for Cosmos DB.

Repositories translate between domain models and stored documents.
"""

from .videos import MetadataStoreError, VideoRepository

__all__ = ["MetadataStoreError", "VideoRepository"]
