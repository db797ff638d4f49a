"""
Azure Blob Storage integration.

Connection bootstrap plus the async SDK client, with an in-memory mock
for local development without a storage account.
"""

from .client import AzureBlobStorage, InMemoryBlobStorage, translate_storage_error
from .connection import bootstrap_connection, make_connector, resolve_connection_string

__all__ = [
    "AzureBlobStorage",
    "InMemoryBlobStorage",
    "bootstrap_connection",
    "make_connector",
    "resolve_connection_string",
    "translate_storage_error",
]
