"""
Connection bootstrap for the blob reader.

Runs once, when a reader is installed:
1. Resolve the configured connection secret to a connection string
2. Let the Azure SDK parse it (fail fast if it can't)
3. Work out the public endpoint clients get redirected to

The secret can be the name of a setting or the connection string itself.
Names are tried first, in order, and the literal value is the fallback,
so existing configurations that inline the connection string keep working.
"""

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from pathlib import Path
from typing import Optional

from ...core.blobs import ConfigurationError, MountConfiguration, StorageConnection
from .client import AzureBlobStorage, InMemoryBlobStorage

logger = logging.getLogger(__name__)

# Takes the configured secret, returns a connection string or None.
ConnectionLookup = Callable[[str], Optional[str]]


def from_environment(environ: Mapping[str, str]) -> ConnectionLookup:
    """Look the secret up as the name of an environment variable."""
    def lookup(secret: str) -> Optional[str]:
        return environ.get(secret) or None
    return lookup


def from_named_connection_strings(named: Mapping[str, str]) -> ConnectionLookup:
    """Look the secret up in the configured named connection strings."""
    def lookup(secret: str) -> Optional[str]:
        return named.get(secret) or None
    return lookup


def as_literal(secret: str) -> Optional[str]:
    """Treat the secret as the connection string itself."""
    return secret


def default_lookups(
    named_connection_strings: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[ConnectionLookup]:
    return [
        from_environment(os.environ if environ is None else environ),
        from_named_connection_strings(named_connection_strings or {}),
        as_literal,
    ]


def resolve_connection_string(secret: str, lookups: Sequence[ConnectionLookup]) -> str:
    """Return the first connection string any lookup finds for the secret."""
    for lookup in lookups:
        found = lookup(secret)
        if found:
            return found
    return secret


def normalize_endpoint(endpoint: str) -> str:
    endpoint = endpoint.strip()
    if not endpoint.endswith("/"):
        endpoint += "/"
    return endpoint


def bootstrap_connection(
    config: MountConfiguration,
    named_connection_strings: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    mock_mode: bool = False,
    mock_directory: Optional[str] = None,
) -> StorageConnection:
    """
    Create the storage connection for a reader.

    Raises ConfigurationError when no connection string is configured or
    the SDK rejects it. This is not retried: it means the configuration
    is wrong, and the host should refuse to start.

    In mock mode the blobs come from memory, seeded from mock_directory
    when one is given.
    """
    if mock_mode:
        storage = InMemoryBlobStorage()
        if mock_directory:
            root = Path(mock_directory)
            if not root.is_dir():
                raise ConfigurationError(f"Mock blob directory does not exist: {mock_directory}")
            loaded = storage.load_directory(root)
            logger.info(
                "Loaded mock blobs",
                extra={"directory": str(root), "blobs": loaded}
            )
        return StorageConnection(
            storage=storage,
            account_endpoint=storage.account_endpoint,
            public_endpoint=normalize_endpoint(config.endpoint_override or storage.account_endpoint),
        )

    if not config.connection_secret:
        raise ConfigurationError(
            "The blob reader requires a named connection string or a connection "
            "string to be specified with the 'connectionstring' option."
        )

    connection_string = resolve_connection_string(
        config.connection_secret,
        default_lookups(named_connection_strings, environ),
    )

    try:
        storage = AzureBlobStorage.from_connection_string(connection_string)
    except ValueError as e:
        raise ConfigurationError(
            "Invalid connectionstring value; rejected by the Azure SDK."
        ) from e

    public_endpoint = normalize_endpoint(config.endpoint_override or storage.account_endpoint)

    logger.info(
        "Connected to blob storage",
        extra={
            "prefix": config.prefix,
            "account_endpoint": storage.account_endpoint,
            "public_endpoint": public_endpoint,
        }
    )

    return StorageConnection(
        storage=storage,
        account_endpoint=storage.account_endpoint,
        public_endpoint=public_endpoint,
    )


def make_connector(
    named_connection_strings: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    mock_mode: bool = False,
    mock_directory: Optional[str] = None,
) -> Callable[[MountConfiguration], StorageConnection]:
    """Bind the lookup sources so a reader can call connect(config) at install."""
    return partial(
        bootstrap_connection,
        named_connection_strings=named_connection_strings,
        environ=environ,
        mock_mode=mock_mode,
        mock_directory=mock_directory,
    )
