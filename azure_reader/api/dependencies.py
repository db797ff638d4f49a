"""
FastAPI dependency injection.

Readers, the hook registry and the read statistics are created once per
app by create_app() and kept on app.state. These dependencies hand them
to route handlers, so routes never build their own and tests can swap
them by building the app with different readers.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.blobs import BlobReader, MountConfiguration, ProcessingDirectives, ReadMetrics
from ..infrastructure.metrics import ReadStatistics
from ..infrastructure.storage import make_connector

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reader Construction
# ---------------------------------------------------------------------------

def create_reader(settings: Settings, metrics: Optional[ReadMetrics] = None) -> BlobReader:
    """
    Build the blob reader described by settings.

    The reader isn't connected yet; that happens when the app installs
    it at startup, so a bad connection string stops the app there.
    """
    config = MountConfiguration.from_options(settings.reader_options())

    reader = BlobReader(
        config=config,
        connect=make_connector(
            named_connection_strings=settings.connection_strings,
            mock_mode=settings.azure_mock_mode,
            mock_directory=settings.azure_mock_directory,
        ),
        directives=ProcessingDirectives(settings.processing_directives_list),
        metrics=metrics,
    )

    logger.debug(
        "Created blob reader",
        extra={"prefix": config.prefix, "mock_mode": settings.azure_mock_mode}
    )

    return reader


# ---------------------------------------------------------------------------
# Request Dependencies
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_readers(request: Request) -> list[BlobReader]:
    return request.app.state.readers


def get_read_statistics(request: Request) -> ReadStatistics:
    return request.app.state.read_statistics


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ReadersDep = Annotated[list[BlobReader], Depends(get_readers)]
ReadStatisticsDep = Annotated[ReadStatistics, Depends(get_read_statistics)]
