"""
Video lifecycle API endpoints.

The browser client drives uploads in three steps:
1. POST /upload-request -> receives a short-lived write SAS URL
2. PUT the raw bytes straight to that URL (x-ms-blob-type: BlockBlob)
3. POST /confirm-upload -> metadata moves to "uploaded"

Listing, download links, and deletion complete the lifecycle. Routes are
deliberately thin: they translate JSON to coordinator calls and back.
Lifecycle errors propagate to the handlers registered in main.py, which
render them as {"error": ...} with the matching status code.
"""

import logging
from typing import Optional

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..dependencies import VideoLifecycleDep

logger = logging.getLogger(__name__)

router = APIRouter()


# Headers the client must send with its PUT to the upload URL
BLOB_UPLOAD_HEADERS = {"x-ms-blob-type": "BlockBlob"}


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadRequest(CamelModel):
    """Request for a write credential."""
    title: Optional[str] = Field(None, description="Display title for the video")
    file_name: Optional[str] = Field(None, description="Blob name; also the video id")


class UploadRequestResponse(CamelModel):
    """Where and how to upload the bytes."""
    upload_url: str = Field(description="Write SAS URL for a direct PUT")
    file_name: str = Field(description="Blob name the URL is scoped to")
    message: str = Field(description="Status message")
    upload_headers: dict[str, str] = Field(
        default_factory=lambda: dict(BLOB_UPLOAD_HEADERS),
        description="Headers to send with the PUT, alongside Content-Type"
    )


class ConfirmUploadRequest(CamelModel):
    """Client's report that the PUT succeeded. fileName and id are interchangeable."""
    file_name: Optional[str] = Field(None, description="Blob name")
    id: Optional[str] = Field(None, description="Same key as fileName")
    title: Optional[str] = Field(None, description="New title, replaces the stored one")


class ConfirmUploadResponse(CamelModel):
    message: str = Field(description="Status message")
    file_name: str = Field(description="Confirmed video id")


class VideoResponse(CamelModel):
    """One video's metadata."""
    id: str = Field(description="Video id, equal to the blob name")
    title: str = Field(description="Display title")
    upload_time: Optional[str] = Field(
        None,
        description="When the upload was first requested (ISO-8601); absent on records written without one",
    )
    status: str = Field(description="sas-generated or uploaded")
    last_updated: Optional[str] = Field(None, description="Last mutation time (ISO-8601)")


class DownloadLinkResponse(CamelModel):
    id: str = Field(description="Video id")
    download_url: str = Field(description="Read SAS URL")
    expires_in_minutes: int = Field(description="Lifetime of the URL")


class DeleteVideoResponse(CamelModel):
    message: str = Field(description="Status message")
    blob_deleted: bool = Field(description="True if a blob existed and was removed")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/upload-request",
    response_model=UploadRequestResponse,
    status_code=status.HTTP_200_OK,
    summary="Request an upload URL",
    description="Issue a 10-minute write SAS URL and store provisional metadata",
)
def request_upload(
    lifecycle: VideoLifecycleDep,
    request: Optional[UploadRequest] = None,
) -> UploadRequestResponse:
    """
    Start an upload.

    The metadata record is written before any byte moves, with status
    "sas-generated". Requesting the same fileName again replaces it.
    """
    request = request or UploadRequest()
    logger.info(
        "Received upload request",
        extra={"title": request.title, "file_name": request.file_name}
    )

    ticket = lifecycle.request_upload(request.title, request.file_name)

    return UploadRequestResponse(
        upload_url=ticket.upload_url,
        file_name=ticket.file_name,
        message=ticket.message,
    )


@router.post(
    "/confirm-upload",
    response_model=ConfirmUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Confirm a finished upload",
    description="Mark the video as uploaded; accepts fileName or id",
)
def confirm_upload(
    lifecycle: VideoLifecycleDep,
    request: Optional[ConfirmUploadRequest] = None,
) -> ConfirmUploadResponse:
    request = request or ConfirmUploadRequest()
    logger.info(
        "Received upload confirmation",
        extra={"file_name": request.file_name, "id": request.id}
    )

    confirmation = lifecycle.confirm_upload(
        file_name=request.file_name,
        video_id=request.id,
        title=request.title,
    )

    return ConfirmUploadResponse(
        message=confirmation.message,
        file_name=confirmation.file_name,
    )


@router.get(
    "/videos",
    response_model=list[VideoResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="List videos",
    description="All video metadata, newest upload first",
)
def list_videos(lifecycle: VideoLifecycleDep) -> list[VideoResponse]:
    """
    List every video record.

    No pagination and no filtering; search is a client-side concern.
    A listed record may point at a blob that was never uploaded.
    """
    records = lifecycle.list_videos()
    return [VideoResponse.model_validate(record.to_document()) for record in records]


@router.get(
    "/videos/{video_id:path}/download",
    response_model=DownloadLinkResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a download link",
    description="Issue a short-lived read SAS URL when both metadata and blob exist",
    responses={404: {"description": "Metadata or blob missing"}},
)
def get_download_link(video_id: str, lifecycle: VideoLifecycleDep) -> DownloadLinkResponse:
    link = lifecycle.get_download_link(video_id)

    return DownloadLinkResponse(
        id=link.id,
        download_url=link.download_url,
        expires_in_minutes=link.expires_in_minutes,
    )


@router.delete(
    "/videos/{video_id:path}",
    response_model=DeleteVideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a video",
    description="Delete the blob, then the metadata; each where present",
)
def delete_video(video_id: str, lifecycle: VideoLifecycleDep) -> DeleteVideoResponse:
    """
    Delete a video.

    Safe to repeat: a second call reports blobDeleted=false.
    """
    logger.info("Delete video requested", extra={"video_id": video_id})

    result = lifecycle.delete_video(video_id)

    return DeleteVideoResponse(
        message=result.message,
        blob_deleted=result.blob_deleted,
    )
