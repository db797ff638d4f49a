"""
Domain models for the blob reader.

These are plain values. A MountConfiguration is fixed once the reader is
installed, an ObjectReference is recomputed for every request, and the
metadata types are produced per lookup. None of them hold connections.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import ConfigurationError

DEFAULT_PREFIX = "/azure"

# Virtual paths may arrive with either separator.
PATH_SEPARATORS = "/\\"

_BOOL = TypeAdapter(bool)


def _option(options: Mapping[str, Any], name: str) -> Any:
    """Look up an option by name, ignoring case like the host's config does."""
    if name in options:
        return options[name]
    lowered = name.lower()
    for key, value in options.items():
        if key.lower() == lowered:
            return value
    return None


def normalize_prefix(prefix: str) -> str:
    """Normalize a mount prefix to a leading slash and no trailing separator."""
    prefix = prefix.strip()
    if prefix.startswith("~"):
        prefix = prefix[1:]
    prefix = prefix.rstrip(PATH_SEPARATORS)
    if not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


@dataclass(frozen=True)
class MountConfiguration:
    """
    Configuration for one mounted blob reader.

    Frozen because nothing may change a reader's configuration after
    it's installed. Multiple readers can be mounted side by side, each
    with its own prefix and connection.
    """
    connection_secret: str
    prefix: str = DEFAULT_PREFIX
    endpoint_override: Optional[str] = None
    redirect_if_unmodified: bool = True

    def __post_init__(self) -> None:
        normalized = normalize_prefix(self.prefix)
        if normalized == "/":
            raise ConfigurationError("Mount prefix cannot be the site root")
        object.__setattr__(self, "prefix", normalized)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "MountConfiguration":
        """
        Build a configuration from the connector's option names.

        Recognized: connectionstring, blobstorageendpoint (or endpoint),
        redirectToBlobIfUnmodified and prefix. Keys are case insensitive.
        """
        endpoint = _option(options, "blobstorageendpoint") or _option(options, "endpoint")

        redirect_raw = _option(options, "redirectToBlobIfUnmodified")
        redirect = True
        if redirect_raw is not None and redirect_raw != "":
            try:
                redirect = _BOOL.validate_python(redirect_raw)
            except ValidationError as e:
                raise ConfigurationError(
                    f"redirectToBlobIfUnmodified must be a boolean, got {redirect_raw!r}"
                ) from e

        return cls(
            connection_secret=_option(options, "connectionstring") or "",
            prefix=_option(options, "prefix") or DEFAULT_PREFIX,
            endpoint_override=endpoint or None,
            redirect_if_unmodified=redirect,
        )


@dataclass(frozen=True)
class ObjectReference:
    """
    Fully qualified location of a blob: endpoint plus container/blob path.

    object_path is already trimmed of separators, so the first segment
    is the container and the rest is the blob name.
    """
    base_endpoint: str
    object_path: str

    @property
    def url(self) -> str:
        return f"{self.base_endpoint.rstrip(PATH_SEPARATORS)}/{self.object_path}"

    @property
    def container(self) -> str:
        return self.object_path.split("/", 1)[0]

    @property
    def blob_name(self) -> str:
        parts = self.object_path.split("/", 1)
        return parts[1] if len(parts) > 1 else ""


@dataclass(frozen=True)
class BlobProperties:
    """What the storage service reports about an existing blob."""
    size: int
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None


@dataclass(frozen=True)
class BlobMetadata:
    """
    Existence and freshness of a blob.

    exists=False is a normal answer, not an error.
    """
    exists: bool
    last_modified_utc: Optional[datetime] = None

    @classmethod
    def missing(cls) -> "BlobMetadata":
        return cls(exists=False)

    @classmethod
    def from_properties(cls, properties: BlobProperties) -> "BlobMetadata":
        last_modified = properties.last_modified
        if last_modified is not None:
            if last_modified.tzinfo is None:
                last_modified = last_modified.replace(tzinfo=timezone.utc)
            else:
                last_modified = last_modified.astimezone(timezone.utc)
        return cls(exists=True, last_modified_utc=last_modified)
