"""
Shared test fixtures.

Readers under test talk to an InMemoryBlobStorage whose endpoint matches
the examples used throughout the tests:

    prefix /store, endpoint https://svc.example/acct/
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import pytest

from azure_reader.core.blobs import (
    BlobReader,
    MountConfiguration,
    PostRewriteHooks,
    ProcessingDirectives,
    StorageConnection,
)
from azure_reader.infrastructure.storage import InMemoryBlobStorage

ENDPOINT = "https://svc.example/acct/"
PREFIX = "/store"
LAST_MODIFIED = datetime(2024, 3, 1, 12, 30, 45, tzinfo=timezone.utc)


class RecordingMetrics:
    """ReadMetrics that remembers every report."""

    def __init__(self) -> None:
        self.reports: list[tuple[float, int]] = []

    def report_read_latency(self, elapsed_seconds: float, byte_count: int) -> None:
        self.reports.append((elapsed_seconds, byte_count))


@pytest.fixture
def storage() -> InMemoryBlobStorage:
    store = InMemoryBlobStorage(account_endpoint=ENDPOINT)
    store.put("container/img.png", b"\x89PNG fake image", content_type="image/png", last_modified=LAST_MODIFIED)
    return store


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def hooks() -> PostRewriteHooks:
    return PostRewriteHooks()


@pytest.fixture
def make_reader(storage: InMemoryBlobStorage, metrics: RecordingMetrics) -> Callable[..., BlobReader]:
    """Factory for readers backed by the in-memory storage fixture."""

    def factory(
        prefix: str = PREFIX,
        redirect: bool = True,
        endpoint_override: Optional[str] = None,
        directives: Optional[ProcessingDirectives] = None,
    ) -> BlobReader:
        config = MountConfiguration(
            connection_secret="UseDevelopmentStorage=true",
            prefix=prefix,
            endpoint_override=endpoint_override,
            redirect_if_unmodified=redirect,
        )

        def connect(config: MountConfiguration) -> StorageConnection:
            public = config.endpoint_override or storage.account_endpoint
            if not public.endswith("/"):
                public += "/"
            return StorageConnection(
                storage=storage,
                account_endpoint=storage.account_endpoint,
                public_endpoint=public,
            )

        return BlobReader(config=config, connect=connect, directives=directives, metrics=metrics)

    return factory


@pytest.fixture
def reader(make_reader, hooks: PostRewriteHooks) -> BlobReader:
    """An installed reader with default settings."""
    return make_reader().install(hooks)
