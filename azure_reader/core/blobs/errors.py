"""
Error taxonomy for the blob reader.

Three kinds of failure matter to callers:
- ConfigurationError: the connector cannot be installed at all
- BlobNotFoundError: the blob does not exist (404 from the service)
- StorageUnavailableError: anything else the service or transport reports

Storage adapters never raise their SDK's exceptions past this layer. They
hand the status code to error_for_status(), which is the only place that
knows which status means what.
"""

from typing import Optional


class BlobReaderError(Exception):
    """Base exception for all blob reader errors."""
    pass


class ConfigurationError(BlobReaderError):
    """
    Raised when the connector configuration is unusable.

    Discovered once at install time. Retrying won't help, so the
    host should refuse to start with this connector active.
    """
    pass


class BlobNotFoundError(BlobReaderError, FileNotFoundError):
    """Raised when the resolved blob does not exist in the storage service."""

    def __init__(self, url: str, message: Optional[str] = None) -> None:
        self.url = url
        super().__init__(message or f"Azure blob file not found: {url}")


class StorageUnavailableError(BlobReaderError):
    """Raised for authorization, throttling, network and other service failures."""

    def __init__(
        self,
        url: str,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message or f"Blob storage request failed for {url} (status={status_code})")


_STATUS_ERRORS: dict[int, type[BlobReaderError]] = {
    404: BlobNotFoundError,
}


def error_for_status(
    status_code: Optional[int],
    url: str,
    message: Optional[str] = None,
) -> BlobReaderError:
    """
    Translate a storage service status code into the error taxonomy.

    Unknown codes and transport failures (no status at all) are treated
    as the service being unavailable.
    """
    error_type = _STATUS_ERRORS.get(status_code) if status_code is not None else None

    if error_type is BlobNotFoundError:
        return BlobNotFoundError(url, message)

    return StorageUnavailableError(url, message, status_code=status_code)
