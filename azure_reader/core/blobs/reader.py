"""
The blob reader: serves blobs from Azure Blob Storage as virtual files.

A BlobReader claims every virtual path under its mount prefix. For those
paths it can:
- report whether the blob exists and when it last changed (fetch_metadata)
- download the blob into memory (open_stream)
- redirect the client straight to blob storage when the request doesn't
  ask for any processing (on_post_rewrite)

The reader doesn't know how to talk to Azure. install() calls the connect
function it was given, and everything after that goes through the
BlobStorage protocol, so tests can hand it an in-memory store.
"""

import io
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Optional, Protocol

from .errors import BlobNotFoundError, ConfigurationError
from .models import BlobMetadata, BlobProperties, MountConfiguration, ObjectReference
from .paths import belongs, redirect_url, resolve_object_reference
from .pipeline import PostRewriteEvent, PostRewriteHooks, ProcessingDirectives

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class BlobStorage(Protocol):
    """
    Interface for blob storage backends.

    Implementations raise BlobNotFoundError for missing blobs and
    StorageUnavailableError for everything else that goes wrong.
    """

    async def get_properties(self, ref: ObjectReference) -> BlobProperties:
        """Fetch a blob's properties (one round trip)."""
        ...

    async def download_into(self, ref: ObjectReference, buffer: io.BytesIO) -> int:
        """Write the whole blob into buffer and return the byte count."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


class ReadMetrics(Protocol):
    """Receives the timing of every successful blob download."""

    def report_read_latency(self, elapsed_seconds: float, byte_count: int) -> None:
        ...


@dataclass(frozen=True)
class StorageConnection:
    """
    Everything bootstrap produces for one reader.

    account_endpoint is the storage client's own endpoint and is used to
    look blobs up. public_endpoint is where clients get redirected; it's
    the configured override when there is one, and always ends with "/".
    """
    storage: BlobStorage
    account_endpoint: str
    public_endpoint: str


ConnectFunction = Callable[[MountConfiguration], StorageConnection]


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class BlobReader:
    """
    Virtual filesystem over one Azure storage account.

    Each reader has its own configuration, so several can be mounted
    side by side under different prefixes.
    """

    def __init__(
        self,
        config: MountConfiguration,
        connect: ConnectFunction,
        directives: Optional[ProcessingDirectives] = None,
        metrics: Optional[ReadMetrics] = None,
    ) -> None:
        self._config = config
        self._connect = connect
        self._directives = directives or ProcessingDirectives()
        self._metrics = metrics
        self._connection: Optional[StorageConnection] = None
        self._hooks: Optional[PostRewriteHooks] = None

    @property
    def config(self) -> MountConfiguration:
        return self._config

    @property
    def prefix(self) -> str:
        return self._config.prefix

    @property
    def is_installed(self) -> bool:
        return self._hooks is not None

    @property
    def connection(self) -> StorageConnection:
        if self._connection is None:
            raise ConfigurationError(f"Blob reader for {self.prefix} has not been installed")
        return self._connection

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def install(self, hooks: PostRewriteHooks) -> "BlobReader":
        """
        Connect to storage and subscribe to the post-rewrite hook.

        Raises ConfigurationError if the connection string is unusable.
        Nothing is subscribed in that case.
        """
        if self.is_installed:
            raise ConfigurationError(f"Blob reader for {self.prefix} is already installed")

        if self._connection is None:
            self._connection = self._connect(self._config)

        hooks.subscribe(self.on_post_rewrite)
        self._hooks = hooks

        logger.info(
            "Installed blob reader",
            extra={
                "prefix": self.prefix,
                "account_endpoint": self._connection.account_endpoint,
                "public_endpoint": self._connection.public_endpoint,
                "redirect_if_unmodified": self._config.redirect_if_unmodified,
            }
        )

        return self

    def uninstall(self, hooks: PostRewriteHooks) -> bool:
        """Unsubscribe from the post-rewrite hook. Safe to call repeatedly."""
        hooks.unsubscribe(self.on_post_rewrite)
        if self._hooks is hooks:
            self._hooks = None
            logger.info("Uninstalled blob reader", extra={"prefix": self.prefix})
        return True

    async def aclose(self) -> None:
        """Close the storage client. The reader must be installed again to be used."""
        if self._connection is not None:
            await self._connection.storage.close()
            self._connection = None

    # -----------------------------------------------------------------------
    # Resolution
    # -----------------------------------------------------------------------

    def belongs(self, virtual_path: str) -> bool:
        return belongs(self.prefix, virtual_path)

    def resolve(self, virtual_path: str) -> ObjectReference:
        return resolve_object_reference(self.prefix, virtual_path, self.connection.account_endpoint)

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def fetch_metadata(
        self,
        virtual_path: str,
        query: Optional[Mapping[str, str]] = None,
    ) -> BlobMetadata:
        """
        Existence and last-modified time of the blob behind a virtual path.

        A missing blob is returned as exists=False. Other storage failures
        raise StorageUnavailableError.
        """
        ref = self.resolve(virtual_path)

        try:
            properties = await self.connection.storage.get_properties(ref)
        except BlobNotFoundError:
            logger.debug("Blob not found", extra={"url": ref.url})
            return BlobMetadata.missing()

        return BlobMetadata.from_properties(properties)

    async def open_stream(
        self,
        virtual_path: str,
        query: Optional[Mapping[str, str]] = None,
    ) -> io.BytesIO:
        """
        Download the blob behind a virtual path into memory.

        The returned buffer is positioned at 0. Raises BlobNotFoundError
        when the blob doesn't exist.
        """
        started = time.perf_counter()
        ref = self.resolve(virtual_path)
        buffer = io.BytesIO()

        byte_count = await self.connection.storage.download_into(ref, buffer)

        buffer.seek(0)
        elapsed = time.perf_counter() - started

        if self._metrics is not None:
            self._metrics.report_read_latency(elapsed, byte_count)

        return buffer

    # -----------------------------------------------------------------------
    # Redirect shortcut
    # -----------------------------------------------------------------------

    def should_redirect(self, virtual_path: str, query: Optional[Mapping[str, str]]) -> bool:
        return (
            self._config.redirect_if_unmodified
            and self.belongs(virtual_path)
            and not self._directives.has_processing_directive(query)
        )

    def on_post_rewrite(self, event: PostRewriteEvent) -> None:
        """
        Send unprocessed requests straight to blob storage.

        When the query asks for no processing there's nothing for us to
        do with the bytes, so let blob storage serve them. We don't check
        that the blob exists first; that round trip is what the redirect
        saves. A missing blob becomes the storage service's 404.
        """
        if not self.should_redirect(event.virtual_path, event.query):
            return

        location = redirect_url(self.prefix, event.virtual_path, self.connection.public_endpoint)

        logger.debug(
            "Redirecting to blob storage",
            extra={"virtual_path": event.virtual_path, "location": location}
        )

        event.response.redirect(location)
