"""
Cosmos DB repository for video metadata.

This module implements the repository pattern for VideoRecord access.
The repository:
1. Translates between domain models and stored documents
2. Encapsulates all Cosmos queries
3. Provides a clean interface for the lifecycle coordinator

The container is partitioned by /id, and the id is the blob name, so
every point operation uses the id as its partition key.
"""

import logging
from typing import Optional

from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from src.core.videos.models import VideoRecord

from ..client import CosmosContainer

logger = logging.getLogger(__name__)


LIST_QUERY = "SELECT * FROM c ORDER BY c.uploadTime DESC"


class MetadataStoreError(Exception):
    """Raised when a Cosmos call fails for a reason other than not-found."""
    pass


class VideoRepository:
    """
    Repository for video metadata persistence.

    Each method corresponds to a use case the coordinator needs:
    - upsert: Create or fully replace a record
    - get_by_id: Point lookup, None when absent
    - list_all: Every record, newest upload first
    - delete_by_id: Remove if present

    No caching and no batching: every call goes to the container.
    """

    def __init__(self, container: CosmosContainer) -> None:
        self._container = container

    def upsert(self, record: VideoRecord) -> None:
        """
        Create or replace the document at record.id.

        Idempotent: repeating the same upsert leaves the same stored state.
        Last write wins; no etag is sent.
        """
        try:
            self._container.upsert_item(body=record.to_document())
        except CosmosHttpResponseError as e:
            logger.error(
                "Failed to upsert video record",
                extra={"video_id": record.id, "error": str(e)}
            )
            raise MetadataStoreError(f"Upsert failed: {e}") from e

        logger.debug(
            "Upserted video record",
            extra={"video_id": record.id, "status": record.status.value}
        )

    def get_by_id(self, video_id: str) -> Optional[VideoRecord]:
        """Load one record. Absence is a valid result, not an error."""
        try:
            document = self._container.read_item(item=video_id, partition_key=video_id)
        except CosmosResourceNotFoundError:
            return None
        except CosmosHttpResponseError as e:
            logger.error(
                "Failed to read video record",
                extra={"video_id": video_id, "error": str(e)}
            )
            raise MetadataStoreError(f"Read failed: {e}") from e

        return VideoRecord.from_document(document)

    def list_all(self) -> list[VideoRecord]:
        """
        Every record ordered by uploadTime descending.

        A document that cannot be read as a VideoRecord (unknown status,
        unparseable timestamp) is skipped with a warning rather than
        failing the whole listing.
        """
        try:
            documents = list(self._container.query_items(
                query=LIST_QUERY,
                enable_cross_partition_query=True,
            ))
        except CosmosHttpResponseError as e:
            logger.error(
                "Failed to query video records",
                extra={"error": str(e)}
            )
            raise MetadataStoreError(f"Query failed: {e}") from e

        records = []
        for document in documents:
            try:
                records.append(VideoRecord.from_document(document))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(
                    "Skipping unreadable video record",
                    extra={"video_id": document.get("id"), "error": str(e)}
                )
        return records

    def delete_by_id(self, video_id: str) -> bool:
        """
        Remove the record if present.

        Returns True when a record was deleted, False when it was already gone.
        """
        try:
            self._container.delete_item(item=video_id, partition_key=video_id)
        except CosmosResourceNotFoundError:
            logger.debug("Video record already absent", extra={"video_id": video_id})
            return False
        except CosmosHttpResponseError as e:
            logger.error(
                "Failed to delete video record",
                extra={"video_id": video_id, "error": str(e)}
            )
            raise MetadataStoreError(f"Delete failed: {e}") from e

        return True
