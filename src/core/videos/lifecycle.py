"""
Video lifecycle coordination.

This module is the core of the service: it issues upload credentials,
tracks each video's metadata through its two statuses, and reconciles
metadata with blob existence when links are requested or videos deleted.

It is framework-agnostic and doesn't know about HTTP, Azure, or Cosmos.
Collaborators arrive through the protocols below; a collaborator passed as
None means the backing service is not configured.

The two stores are never updated transactionally. Each store answers its
own existence question, read paths that need both check both, and delete
is best-effort per store.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Protocol

from .errors import (
    DependencyError,
    NotConfiguredError,
    ValidationError,
    VideoLifecycleError,
    VideoNotFoundError,
)
from .models import (
    DEFAULT_TITLE,
    AccessCapability,
    DeletionResult,
    DownloadLink,
    SignedUrl,
    UploadConfirmation,
    UploadTicket,
    VideoRecord,
    utc_now,
)

logger = logging.getLogger(__name__)


STORAGE_NOT_CONFIGURED = "Storage account is not configured"
METADATA_NOT_CONFIGURED = "Cosmos DB is not configured"


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class CredentialIssuer(Protocol):
    """Produces signed, time-limited URLs scoped to a single blob."""

    def issue(
        self,
        object_key: str,
        capability: AccessCapability,
        ttl_minutes: int,
    ) -> SignedUrl:
        ...


class MetadataStore(Protocol):
    """One VideoRecord per id, keyed by blob name."""

    def upsert(self, record: VideoRecord) -> None: ...

    def get_by_id(self, video_id: str) -> Optional[VideoRecord]: ...

    def list_all(self) -> list[VideoRecord]: ...

    def delete_by_id(self, video_id: str) -> bool: ...


class ObjectStore(Protocol):
    """Existence and deletion of the video bytes."""

    def exists(self, key: str) -> bool: ...

    def delete_if_exists(self, key: str) -> bool: ...


# ---------------------------------------------------------------------------
# Lifecycle Service
# ---------------------------------------------------------------------------

class VideoLifecycle:
    """
    Upload / confirm / list / download / delete coordinator.

    Stateless between calls; all state lives in the two external stores.
    Every method either returns its result or raises a VideoLifecycleError
    subclass. Collaborator failures are logged and wrapped in DependencyError.
    """

    def __init__(
        self,
        repository: Optional[MetadataStore],
        object_store: Optional[ObjectStore],
        credential_issuer: Optional[CredentialIssuer],
        *,
        upload_ttl_minutes: int = 10,
        download_ttl_minutes: int = 10,
        verify_blob_on_confirm: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._object_store = object_store
        self._credential_issuer = credential_issuer
        self._upload_ttl_minutes = upload_ttl_minutes
        self._download_ttl_minutes = download_ttl_minutes
        self._verify_blob_on_confirm = verify_blob_on_confirm
        self._clock = clock

    # -- configuration guards ------------------------------------------------

    def _require_storage(self) -> tuple[ObjectStore, CredentialIssuer]:
        if self._object_store is None or self._credential_issuer is None:
            raise NotConfiguredError(STORAGE_NOT_CONFIGURED)
        return self._object_store, self._credential_issuer

    def _require_metadata(self) -> MetadataStore:
        if self._repository is None:
            raise NotConfiguredError(METADATA_NOT_CONFIGURED)
        return self._repository

    @staticmethod
    def _require_id(video_id: str) -> None:
        # An empty id names no blob and no record
        if not video_id:
            raise VideoNotFoundError("Video not found")

    # -- operations ------------------------------------------------------------

    def request_upload(self, title: Optional[str], file_name: Optional[str]) -> UploadTicket:
        """
        Issue a write credential for `file_name` and store a provisional record.

        The record is written before any byte is transferred. Requesting an
        upload again for the same name replaces the record and resets its
        upload time.
        """
        if not title or not file_name:
            logger.warning(
                "Upload request missing fields",
                extra={"title": title, "file_name": file_name}
            )
            raise ValidationError("Missing title or fileName")

        _, issuer = self._require_storage()
        repository = self._require_metadata()

        try:
            credential = issuer.issue(
                file_name,
                AccessCapability.WRITE,
                self._upload_ttl_minutes,
            )
            record = VideoRecord.provisional(file_name, title, self._clock())
            repository.upsert(record)
        except VideoLifecycleError:
            raise
        except Exception as e:
            logger.error(
                "Upload request failed",
                extra={"file_name": file_name, "error": str(e)},
                exc_info=e,
            )
            raise DependencyError("Failed to generate SAS token") from e

        logger.info(
            "Issued upload credential",
            extra={"file_name": file_name, "expires_in_minutes": credential.expires_in_minutes}
        )

        return UploadTicket(
            upload_url=credential.url,
            file_name=file_name,
            message="SAS token generated and metadata stored",
        )

    def confirm_upload(
        self,
        file_name: Optional[str] = None,
        video_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> UploadConfirmation:
        """
        Mark a video as uploaded on the client's word.

        `file_name` and `video_id` name the same key; either is accepted.
        A missing prior record is not an error: one is synthesised with the
        default title and a fresh upload time. An existing record keeps its
        upload time and title unless a new title is given, and any
        properties other clients stored on it are written back unchanged.
        """
        key = file_name or video_id
        if not key:
            raise ValidationError("Missing fileName (or id)")

        repository = self._require_metadata()
        if self._verify_blob_on_confirm:
            object_store, _ = self._require_storage()

        try:
            if self._verify_blob_on_confirm and not object_store.exists(key):
                logger.warning(
                    "Confirm rejected, blob missing",
                    extra={"video_id": key}
                )
                raise VideoNotFoundError("Video file not found in blob storage")

            now = self._clock()
            existing = self._read_tolerantly(repository, key)
            if existing is None:
                record = VideoRecord(id=key, title=title or DEFAULT_TITLE, upload_time=now)
            else:
                record = existing
            record.mark_uploaded(now, title=title)
            repository.upsert(record)
        except VideoLifecycleError:
            raise
        except Exception as e:
            logger.error(
                "Confirm upload failed",
                extra={"video_id": key, "error": str(e)},
                exc_info=e,
            )
            raise DependencyError("Failed to confirm upload") from e

        logger.info(
            "Upload confirmed",
            extra={"video_id": key, "had_prior_record": existing is not None}
        )

        return UploadConfirmation(
            message="Upload confirmed and metadata updated",
            file_name=key,
        )

    def list_videos(self) -> list[VideoRecord]:
        """All records, newest upload first. Blob existence is not checked."""
        repository = self._require_metadata()

        try:
            records = repository.list_all()
        except Exception as e:
            logger.error(
                "Listing videos failed",
                extra={"error": str(e)},
                exc_info=e,
            )
            raise DependencyError("Failed to fetch videos") from e

        logger.debug("Listed videos", extra={"count": len(records)})
        return records

    def get_download_link(self, video_id: str) -> DownloadLink:
        """
        Issue a read credential, but only when both the record and the blob exist.

        Checking both avoids handing out links for metadata whose upload never
        finished and for blobs orphaned without metadata.
        """
        object_store, issuer = self._require_storage()
        repository = self._require_metadata()
        self._require_id(video_id)

        try:
            if repository.get_by_id(video_id) is None:
                raise VideoNotFoundError("Video not found")

            if not object_store.exists(video_id):
                logger.warning(
                    "Metadata present but blob missing",
                    extra={"video_id": video_id}
                )
                raise VideoNotFoundError("Video file not found in blob storage")

            credential = issuer.issue(
                video_id,
                AccessCapability.READ,
                self._download_ttl_minutes,
            )
        except VideoLifecycleError:
            raise
        except Exception as e:
            logger.error(
                "Download link generation failed",
                extra={"video_id": video_id, "error": str(e)},
                exc_info=e,
            )
            raise DependencyError("Failed to generate download link") from e

        return DownloadLink(
            id=video_id,
            download_url=credential.url,
            expires_in_minutes=credential.expires_in_minutes,
        )

    def delete_video(self, video_id: str) -> DeletionResult:
        """
        Delete the blob, then the metadata, independently.

        Blob first: a lingering record that points at nothing is safer than
        a lingering blob nobody can find. A blob delete failure fails the
        operation before metadata is touched. A metadata delete failure is
        logged and swallowed.
        """
        repository = self._require_metadata()
        object_store, _ = self._require_storage()
        self._require_id(video_id)

        try:
            blob_deleted = object_store.delete_if_exists(video_id)
        except Exception as e:
            logger.error(
                "Blob delete failed",
                extra={"video_id": video_id, "error": str(e)},
                exc_info=e,
            )
            raise DependencyError("Failed to delete video") from e

        try:
            repository.delete_by_id(video_id)
        except Exception as e:
            logger.warning(
                "Metadata delete failed, record may linger",
                extra={"video_id": video_id, "error": str(e)}
            )

        logger.info(
            "Video deleted",
            extra={"video_id": video_id, "blob_deleted": blob_deleted}
        )

        return DeletionResult(
            message="Video deleted (metadata and blob where present)",
            blob_deleted=blob_deleted,
        )

    # -- helpers ---------------------------------------------------------------

    @staticmethod
    def _read_tolerantly(repository: MetadataStore, key: str) -> Optional[VideoRecord]:
        """Point read where any failure counts as 'no prior record'."""
        try:
            return repository.get_by_id(key)
        except Exception as e:
            logger.warning(
                "Could not read existing record, treating as absent",
                extra={"video_id": key, "error": str(e)}
            )
            return None
