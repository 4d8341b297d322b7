"""
Shared access signature (SAS) URLs for direct client-to-blob transfer.

The browser never sends video bytes through the API. Instead it receives a
signed URL that grants exactly one capability (create+write, or read) on
exactly one blob until a short expiry, and talks to Blob Storage directly.

Signing is pure computation over the clock and the account key; no network
call is made. Mock mode returns recognisable mock:// URLs with the same
query parameters so the rest of the flow can be exercised locally.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobSasPermissions, generate_blob_sas

from ...core.videos.models import AccessCapability, SignedUrl
from .client import StorageConfigurationError

logger = logging.getLogger(__name__)


def _permissions_for(capability: AccessCapability) -> BlobSasPermissions:
    if capability is AccessCapability.WRITE:
        return BlobSasPermissions(create=True, write=True)
    return BlobSasPermissions(read=True)


def _validate_request(object_key: str, ttl_minutes: int) -> None:
    if not object_key:
        raise ValueError("object_key cannot be empty")
    if ttl_minutes <= 0:
        raise ValueError("ttl_minutes must be positive")


def build_blob_url(account_name: str, container_name: str, blob_name: str) -> str:
    """Public URL of a blob, without any credential."""
    return (
        f"https://{account_name}.blob.core.windows.net/"
        f"{container_name}/{quote(blob_name)}"
    )


@dataclass
class SasCredentialIssuer:
    """
    Issues blob-scoped SAS URLs signed with the storage account key.

    Holds no client and opens no connection, so it is cheap to build per
    request.
    """
    account_name: str
    account_key: str
    container_name: str
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)

    def issue(
        self,
        object_key: str,
        capability: AccessCapability,
        ttl_minutes: int,
    ) -> SignedUrl:
        """
        Sign a URL granting `capability` on `object_key` for `ttl_minutes`.

        Raises StorageConfigurationError when the account name or key is
        missing or the key is not valid base64.
        """
        _validate_request(object_key, ttl_minutes)

        if not self.account_name or not self.account_key:
            raise StorageConfigurationError("Storage account name and key are required to sign URLs")

        expiry = self.clock() + timedelta(minutes=ttl_minutes)

        try:
            token = generate_blob_sas(
                account_name=self.account_name,
                container_name=self.container_name,
                blob_name=object_key,
                account_key=self.account_key,
                permission=_permissions_for(capability),
                expiry=expiry,
            )
        except (ValueError, TypeError, AzureError) as e:
            logger.error(
                "Failed to sign blob URL",
                extra={"blob": object_key, "error": str(e)}
            )
            raise StorageConfigurationError(f"Storage account key is malformed: {e}") from e

        url = f"{build_blob_url(self.account_name, self.container_name, object_key)}?{token}"

        logger.debug(
            "Signed blob URL",
            extra={
                "blob": object_key,
                "capability": capability.value,
                "expires_at": expiry.isoformat(),
            }
        )

        return SignedUrl(url=url, raw_token=token, expires_in_minutes=ttl_minutes)


# ---------------------------------------------------------------------------
# Mock Issuer for Local Development
# ---------------------------------------------------------------------------

class MockCredentialIssuer:
    """
    Returns mock:// URLs shaped like real SAS URLs.

    The query string carries sp (permissions), sr, and se (expiry) like a
    real token, so tests can assert on scope and lifetime.
    """

    def __init__(
        self,
        container_name: str = "videos",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._container_name = container_name
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(
        self,
        object_key: str,
        capability: AccessCapability,
        ttl_minutes: int,
    ) -> SignedUrl:
        _validate_request(object_key, ttl_minutes)

        expiry = self._clock() + timedelta(minutes=ttl_minutes)
        token = urlencode({
            "sp": str(_permissions_for(capability)),
            "sr": "b",
            "se": expiry.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "sig": "mock",
        })
        url = f"mock://storage/{self._container_name}/{quote(object_key)}?{token}"

        return SignedUrl(url=url, raw_token=token, expires_in_minutes=ttl_minutes)
