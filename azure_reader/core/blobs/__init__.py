"""
Blob reader logic.

Contains path resolution, the reader itself, its error taxonomy and the
interfaces it expects from the host pipeline.
"""

from .errors import (
    BlobNotFoundError,
    BlobReaderError,
    ConfigurationError,
    StorageUnavailableError,
    error_for_status,
)
from .models import (
    DEFAULT_PREFIX,
    BlobMetadata,
    BlobProperties,
    MountConfiguration,
    ObjectReference,
)
from .paths import belongs, redirect_url, resolve_object_reference, resolve_object_url, strip_prefix
from .pipeline import (
    DEFAULT_PROCESSING_DIRECTIVES,
    PostRewriteEvent,
    PostRewriteHooks,
    ProcessingDirectives,
    RedirectSink,
    ResponseSink,
)
from .reader import BlobReader, BlobStorage, ReadMetrics, StorageConnection

__all__ = [
    "BlobMetadata",
    "BlobNotFoundError",
    "BlobProperties",
    "BlobReader",
    "BlobReaderError",
    "BlobStorage",
    "ConfigurationError",
    "DEFAULT_PREFIX",
    "DEFAULT_PROCESSING_DIRECTIVES",
    "MountConfiguration",
    "ObjectReference",
    "PostRewriteEvent",
    "PostRewriteHooks",
    "ProcessingDirectives",
    "ReadMetrics",
    "RedirectSink",
    "ResponseSink",
    "StorageConnection",
    "StorageUnavailableError",
    "belongs",
    "error_for_status",
    "redirect_url",
    "resolve_object_reference",
    "resolve_object_url",
    "strip_prefix",
]
