"""
Blob serving endpoints.

One router per mounted reader, included under the reader's prefix:

    GET  /azure/{container}/{blob}   -> blob bytes
    HEAD /azure/{container}/{blob}   -> existence and Last-Modified only

Requests that don't ask for processing normally never get here; the
post-rewrite hook redirects them to blob storage first. What does get
here is everything with a processing directive, plus all requests when
redirects are turned off.
"""

import logging
import mimetypes
from datetime import datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response, status

from ...core.blobs import BlobMetadata, BlobNotFoundError, BlobReader, StorageUnavailableError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _not_found(virtual_path: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"File not found: {virtual_path}",
    )


def _unavailable(virtual_path: str, error: StorageUnavailableError) -> HTTPException:
    logger.error(
        "Blob storage unavailable",
        extra={
            "virtual_path": virtual_path,
            "status_code": error.status_code,
            "error": str(error),
        }
    )
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Blob storage is unavailable. Please retry later.",
    )


def _parse_http_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    # Naive results mean the header had no zone; HTTP dates are always GMT.
    if parsed.tzinfo is None:
        return None
    return parsed


def _freshness_headers(metadata: BlobMetadata) -> dict[str, str]:
    if metadata.last_modified_utc is None:
        return {}
    return {"Last-Modified": format_datetime(metadata.last_modified_utc, usegmt=True)}


def _not_modified_since(metadata: BlobMetadata, since: Optional[datetime]) -> bool:
    """HTTP dates have whole-second resolution, so compare without microseconds."""
    if since is None or metadata.last_modified_utc is None:
        return False
    return metadata.last_modified_utc.replace(microsecond=0) <= since


async def _fetch_metadata(reader: BlobReader, virtual_path: str, request: Request) -> BlobMetadata:
    try:
        return await reader.fetch_metadata(virtual_path, request.query_params)
    except StorageUnavailableError as e:
        raise _unavailable(virtual_path, e) from e


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

def create_blob_router(reader: BlobReader) -> APIRouter:
    """Build the router serving one reader's virtual files."""
    router = APIRouter()

    @router.api_route(
        "/{blob_path:path}",
        methods=["GET", "HEAD"],
        summary="Serve a blob",
        description="Returns the blob's bytes, or only its headers for HEAD requests.",
        responses={
            304: {"description": "Not modified since If-Modified-Since"},
            404: {"description": "Blob not found"},
            503: {"description": "Blob storage unavailable"},
        },
    )
    async def serve_blob(blob_path: str, request: Request) -> Response:
        virtual_path = request.url.path
        headers: dict[str, str] = {}

        if_modified_since = _parse_http_date(request.headers.get("if-modified-since"))

        if request.method == "HEAD" or if_modified_since is not None:
            metadata = await _fetch_metadata(reader, virtual_path, request)
            if not metadata.exists:
                raise _not_found(virtual_path)

            headers = _freshness_headers(metadata)

            if _not_modified_since(metadata, if_modified_since):
                return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

            if request.method == "HEAD":
                return Response(status_code=status.HTTP_200_OK, headers=headers)

        try:
            stream = await reader.open_stream(virtual_path, request.query_params)
        except BlobNotFoundError as e:
            raise _not_found(virtual_path) from e
        except StorageUnavailableError as e:
            raise _unavailable(virtual_path, e) from e

        content_type, _ = mimetypes.guess_type(blob_path)

        return Response(
            content=stream.read(),
            media_type=content_type or "application/octet-stream",
            headers=headers,
        )

    return router
