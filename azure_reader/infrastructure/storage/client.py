"""
Blob storage clients.

Supports Azure Blob Storage through the async SDK, with a mock mode that
keeps blobs in memory for local development and tests. Mock storage can
be seeded from a local directory.

Both clients speak the BlobStorage protocol from the core package and
report failures with the reader's error taxonomy. SDK exceptions never
leak past this module; they are chained as the cause instead.
"""

import io
import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob.aio import BlobClient, BlobServiceClient

from ...core.blobs import (
    BlobNotFoundError,
    BlobProperties,
    BlobReaderError,
    ObjectReference,
    error_for_status,
)

logger = logging.getLogger(__name__)

MOCK_ENDPOINT = "mock://storage/"


def translate_storage_error(error: AzureError, url: str) -> BlobReaderError:
    """
    Map an Azure SDK exception onto the reader's error taxonomy.

    Transport failures carry no status code and come out as
    StorageUnavailableError.
    """
    status_code: Optional[int] = getattr(error, "status_code", None)
    if status_code is None and isinstance(error, ResourceNotFoundError):
        status_code = 404

    translated = error_for_status(status_code, url, getattr(error, "message", None) or str(error))

    if not isinstance(translated, BlobNotFoundError):
        logger.error(
            "Blob storage request failed",
            extra={
                "url": url,
                "status_code": status_code,
                "error": str(error),
            }
        )

    return translated


class AzureBlobStorage:
    """
    Azure Blob Storage client.

    Wraps one BlobServiceClient for the lifetime of the reader. The
    service client is only read from after construction, so concurrent
    requests can share it.
    """

    def __init__(self, service: BlobServiceClient) -> None:
        self._service = service

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "AzureBlobStorage":
        """
        Create a client from an Azure connection string.

        Raises ValueError when the SDK rejects the connection string.
        No network traffic happens here.
        """
        return cls(BlobServiceClient.from_connection_string(connection_string))

    @property
    def account_endpoint(self) -> str:
        """
        Primary blob endpoint of the account, slash-terminated.

        Built from scheme and host so a SAS token in the connection
        string never ends up in a URL we hand out.
        """
        return f"{self._service.scheme}://{self._service.primary_hostname}/"

    def _blob_client(self, ref: ObjectReference) -> BlobClient:
        if not ref.container or not ref.blob_name:
            raise BlobNotFoundError(ref.url, f"Path does not name a blob: {ref.url}")
        return self._service.get_blob_client(ref.container, ref.blob_name)

    async def get_properties(self, ref: ObjectReference) -> BlobProperties:
        blob = self._blob_client(ref)

        try:
            properties = await blob.get_blob_properties()
        except AzureError as e:
            raise translate_storage_error(e, ref.url) from e

        content_settings = getattr(properties, "content_settings", None)

        return BlobProperties(
            size=properties.size,
            last_modified=properties.last_modified,
            content_type=getattr(content_settings, "content_type", None),
            etag=properties.etag,
        )

    async def download_into(self, ref: ObjectReference, buffer: io.BytesIO) -> int:
        blob = self._blob_client(ref)

        try:
            downloader = await blob.download_blob()
            byte_count = await downloader.readinto(buffer)
        except AzureError as e:
            raise translate_storage_error(e, ref.url) from e

        logger.debug(
            "Downloaded blob",
            extra={"url": ref.url, "size_bytes": byte_count}
        )

        return byte_count

    async def close(self) -> None:
        await self._service.close()


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class InMemoryBlobStorage:
    """
    In-memory blob storage for local development.

    Blobs are keyed by "container/blob/name". Failures can be injected
    per path with fail(), which makes the error paths easy to exercise
    without a storage account.
    """

    def __init__(self, account_endpoint: str = MOCK_ENDPOINT) -> None:
        self._account_endpoint = account_endpoint.rstrip("/") + "/"
        self._blobs: dict[str, tuple[bytes, BlobProperties]] = {}
        self._failures: dict[str, int] = {}
        self.closed = False
        logger.info("Initialized mock blob storage (in-memory)")

    @property
    def account_endpoint(self) -> str:
        return self._account_endpoint

    def put(
        self,
        object_path: str,
        data: bytes,
        content_type: Optional[str] = None,
        last_modified: Optional[datetime] = None,
    ) -> BlobProperties:
        """Store a blob under "container/blob/name"."""
        properties = BlobProperties(
            size=len(data),
            last_modified=last_modified or datetime.now(timezone.utc),
            content_type=content_type,
            etag=f'"{len(self._blobs):x}-{len(data):x}"',
        )
        self._blobs[object_path.strip("/")] = (data, properties)
        return properties

    def load_directory(self, root: Path) -> int:
        """
        Store every file under root as a blob.

        The first directory level is the container, so
        root/images/logo.png becomes "images/logo.png". Returns the
        number of blobs loaded.
        """
        count = 0
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            content_type, _ = mimetypes.guess_type(path.name)
            self.put(
                path.relative_to(root).as_posix(),
                path.read_bytes(),
                content_type=content_type,
                last_modified=datetime.fromtimestamp(path.stat().st_mtime, timezone.utc),
            )
            count += 1
        return count

    def fail(self, object_path: str, status_code: int) -> None:
        """Make every request for object_path fail with status_code."""
        self._failures[object_path.strip("/")] = status_code

    def _lookup(self, ref: ObjectReference) -> tuple[bytes, BlobProperties]:
        status_code = self._failures.get(ref.object_path)
        if status_code is not None:
            raise error_for_status(status_code, ref.url)

        entry = self._blobs.get(ref.object_path)
        if entry is None:
            raise BlobNotFoundError(ref.url)
        return entry

    async def get_properties(self, ref: ObjectReference) -> BlobProperties:
        _, properties = self._lookup(ref)
        return properties

    async def download_into(self, ref: ObjectReference, buffer: io.BytesIO) -> int:
        data, _ = self._lookup(ref)
        return buffer.write(data)

    async def close(self) -> None:
        self.closed = True
