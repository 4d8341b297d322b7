"""
Video lifecycle logic.

Contains the lifecycle coordinator, domain models, and lifecycle errors.
"""

from .errors import (
    DependencyError,
    NotConfiguredError,
    ValidationError,
    VideoLifecycleError,
    VideoNotFoundError,
)
from .lifecycle import CredentialIssuer, MetadataStore, ObjectStore, VideoLifecycle
from .models import (
    AccessCapability,
    DeletionResult,
    DownloadLink,
    SignedUrl,
    UploadConfirmation,
    UploadTicket,
    VideoRecord,
    VideoStatus,
)

__all__ = [
    "AccessCapability",
    "CredentialIssuer",
    "DeletionResult",
    "DependencyError",
    "DownloadLink",
    "MetadataStore",
    "NotConfiguredError",
    "ObjectStore",
    "SignedUrl",
    "UploadConfirmation",
    "UploadTicket",
    "ValidationError",
    "VideoLifecycle",
    "VideoLifecycleError",
    "VideoNotFoundError",
    "VideoRecord",
    "VideoStatus",
]
