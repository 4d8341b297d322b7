"""
Domain models for video metadata.

These models represent the core business concepts. They have no dependencies
on Azure SDKs, FastAPI, or storage formats beyond the plain document shape
the metadata store keeps. The record id doubles as the blob name, which is
how the metadata store and the object store stay correlated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


DEFAULT_TITLE = "Untitled video"

# Document keys the record models; everything else rides along in `extra`
RECORD_FIELDS = frozenset({"id", "title", "uploadTime", "status", "lastUpdated"})


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Serialise a datetime as ISO-8601 UTC with milliseconds and a Z suffix.

    The fixed width keeps lexical order equal to chronological order,
    which the metadata store relies on for ORDER BY uploadTime.
    """
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing Z."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class VideoStatus(Enum):
    """
    Where a video is in its upload lifecycle.

    The order is meaningful: status only moves forward.
    """
    SAS_GENERATED = "sas-generated"  # write credential issued, transfer unconfirmed
    UPLOADED = "uploaded"            # client reported a completed transfer

    @property
    def rank(self) -> int:
        return list(VideoStatus).index(self)

    def can_transition_to(self, target: "VideoStatus") -> bool:
        """Forward (or same-state) moves only."""
        return target.rank >= self.rank


class StatusTransitionError(Exception):
    """Raised when a mutation would move a record's status backwards."""
    pass


@dataclass
class VideoRecord:
    """
    Metadata for one video object.

    `id` is the blob name and the metadata store key. `upload_time` is
    fixed at creation; `last_updated` changes on every later mutation.

    Documents written by other clients may lack uploadTime, in which case
    `upload_time` stays None until the next mutation stamps it. Properties
    this model does not know are kept in `extra` and written back unchanged.
    """
    id: str
    title: str
    upload_time: Optional[datetime]
    status: VideoStatus = VideoStatus.SAS_GENERATED
    last_updated: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Video id cannot be empty")

    @classmethod
    def provisional(cls, video_id: str, title: str, now: datetime) -> "VideoRecord":
        """A fresh record for an upload that has a write credential but no bytes yet."""
        return cls(
            id=video_id,
            title=title,
            upload_time=now,
            status=VideoStatus.SAS_GENERATED,
        )

    @property
    def is_uploaded(self) -> bool:
        return self.status is VideoStatus.UPLOADED

    def advance_to(self, status: VideoStatus, now: datetime) -> None:
        """Move the record to `status`, refusing backward transitions."""
        if not self.status.can_transition_to(status):
            raise StatusTransitionError(
                f"Cannot move video {self.id} from {self.status.value} to {status.value}"
            )
        self.status = status
        self.last_updated = now
        if self.upload_time is None:
            self.upload_time = now

    def mark_uploaded(self, now: datetime, title: Optional[str] = None) -> None:
        """Record a completed transfer, optionally renaming the video."""
        if title:
            self.title = title
        self.advance_to(VideoStatus.UPLOADED, now)

    def to_document(self) -> dict[str, Any]:
        """Plain JSON-compatible dict in the stored/API shape."""
        document: dict[str, Any] = dict(self.extra)
        document.update({
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
        })
        if self.upload_time is not None:
            document["uploadTime"] = format_timestamp(self.upload_time)
        if self.last_updated is not None:
            document["lastUpdated"] = format_timestamp(self.last_updated)
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "VideoRecord":
        """
        Build a record from a stored document.

        Store system properties (_rid, _etag, _ts, ...) are dropped.
        A missing title gets the default; a missing uploadTime stays None.

        Raises:
            KeyError: If the document has no id
            ValueError: If status or a timestamp cannot be parsed
        """
        upload_time = document.get("uploadTime")
        last_updated = document.get("lastUpdated")
        return cls(
            id=document["id"],
            title=document.get("title") or DEFAULT_TITLE,
            upload_time=parse_timestamp(upload_time) if upload_time else None,
            status=VideoStatus(document.get("status", VideoStatus.SAS_GENERATED.value)),
            last_updated=parse_timestamp(last_updated) if last_updated else None,
            extra={
                key: value for key, value in document.items()
                if key not in RECORD_FIELDS and not key.startswith("_")
            },
        )


class AccessCapability(Enum):
    """What a signed URL lets its holder do with one blob."""
    WRITE = "write"  # create + write, for the client's direct upload
    READ = "read"


@dataclass(frozen=True)
class SignedUrl:
    """A time-limited URL plus the raw token embedded in it."""
    url: str
    raw_token: str
    expires_in_minutes: int


@dataclass(frozen=True)
class UploadTicket:
    """Result of an upload request: where the client should PUT the bytes."""
    upload_url: str
    file_name: str
    message: str


@dataclass(frozen=True)
class UploadConfirmation:
    message: str
    file_name: str


@dataclass(frozen=True)
class DownloadLink:
    id: str
    download_url: str
    expires_in_minutes: int


@dataclass(frozen=True)
class DeletionResult:
    message: str
    blob_deleted: bool
