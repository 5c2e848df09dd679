"""Media catalog endpoints.

Listing, detail and raw file reads are served from the filesystem on every
request. Regeneration endpoints delete artifacts and start a scan, which
rebuilds whatever is missing.
"""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import PlainTextResponse

from mediatorr_api.api.deps import (
    ArtifactsDep,
    CatalogDep,
    OverridesDep,
    ScanManagerDep,
)
from mediatorr_api.api.exceptions import (
    ErrorResponse,
    MediaFileNotFoundError,
    MediaNotFoundError,
    OverrideNotFoundError,
)
from mediatorr_api.core.enums import MediaType
from mediatorr_api.core.models import MediaDetail, MediaPage, OverrideInfo
from mediatorr_api.core.utils import is_safe_name
from mediatorr_api.exceptions import OverrideNotSupportedError
from mediatorr_api.schemas.media import (
    DeleteArtifactsResponse,
    OverrideRequest,
    RegenerateResponse,
)

router = APIRouter(prefix="/media", tags=["media"])

MAX_PER_PAGE = 500


def _require_safe_name(media_type: MediaType, name: str) -> None:
    """Reject names that could escape the item directory."""
    if not is_safe_name(name):
        raise MediaNotFoundError(media_type, name)


def _require_override_support(media_type: MediaType) -> None:
    if not media_type.supports_override:
        raise OverrideNotSupportedError(media_type)


@router.get("/{media_type}")
async def list_media(
    media_type: MediaType,
    catalog: CatalogDep,
    search: str = "",
    sort: str = "name_asc",
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(alias="perPage", ge=1, le=MAX_PER_PAGE)] = 24,
) -> MediaPage:
    """List items of one type with search, sort and pagination.

    Unknown sort values fall back to name_asc. Pages past the end return
    an empty item list.
    """
    return await asyncio.to_thread(
        catalog.list_media,
        media_type,
        search=search,
        sort=sort,
        page=page,
        per_page=per_page,
    )


@router.get(
    "/{media_type}/{name}",
    responses={404: {"model": ErrorResponse, "description": "Item not found"}},
)
async def get_media_detail(
    media_type: MediaType, name: str, catalog: CatalogDep
) -> MediaDetail:
    """Get files, metadata, source info and override of one item."""
    detail = await asyncio.to_thread(catalog.detail, media_type, name)
    if detail is None:
        raise MediaNotFoundError(media_type, name)
    return detail


@router.get(
    "/{media_type}/{name}/file/{filename}",
    response_class=PlainTextResponse,
    responses={404: {"model": ErrorResponse, "description": "File not found"}},
)
async def get_file_content(
    media_type: MediaType, name: str, filename: str, catalog: CatalogDep
) -> PlainTextResponse:
    """Return the raw text of a file inside an item directory."""
    content = await asyncio.to_thread(catalog.file_content, media_type, name, filename)
    if content is None:
        raise MediaFileNotFoundError(filename)
    return PlainTextResponse(content)


@router.delete("/{media_type}/{name}")
async def delete_artifacts(
    media_type: MediaType, name: str, artifacts: ArtifactsDep
) -> DeleteArtifactsResponse:
    """Delete every generated sidecar of an item."""
    _require_safe_name(media_type, name)
    deleted = await asyncio.to_thread(artifacts.delete_artifacts, media_type, name)
    return DeleteArtifactsResponse(deleted=deleted)


@router.post(
    "/{media_type}/{name}/regenerate",
    responses={409: {"model": ErrorResponse, "description": "Scan already running"}},
)
async def regenerate(
    media_type: MediaType,
    name: str,
    artifacts: ArtifactsDep,
    scan_manager: ScanManagerDep,
) -> RegenerateResponse:
    """Delete all artifacts of an item and start a scan to rebuild them."""
    _require_safe_name(media_type, name)
    deleted = 0

    async def delete() -> None:
        nonlocal deleted
        deleted = await asyncio.to_thread(artifacts.delete_artifacts, media_type, name)

    await scan_manager.trigger(prepare=delete)
    return RegenerateResponse(deleted=deleted)


@router.post(
    "/{media_type}/{name}/refresh-metadata",
    responses={409: {"model": ErrorResponse, "description": "Scan already running"}},
)
async def refresh_metadata(
    media_type: MediaType,
    name: str,
    artifacts: ArtifactsDep,
    scan_manager: ScanManagerDep,
) -> RegenerateResponse:
    """Drop cached metadata and its derived sidecars, then rescan.

    The torrent and nfo are kept. Any override stays in place, so the next
    scan fetches metadata for the overridden ID.
    """
    _require_safe_name(media_type, name)
    deleted = 0

    async def delete() -> None:
        nonlocal deleted
        deleted = await asyncio.to_thread(
            artifacts.delete_metadata_artifacts, media_type, name
        )

    await scan_manager.trigger(prepare=delete)
    return RegenerateResponse(deleted=deleted)


# -- Overrides --


@router.get(
    "/{media_type}/{name}/override",
    responses={404: {"model": ErrorResponse, "description": "No override"}},
)
async def get_override(
    media_type: MediaType, name: str, overrides: OverridesDep
) -> OverrideInfo:
    """Get the external catalog ID forced for an item."""
    _require_override_support(media_type)
    override = await asyncio.to_thread(overrides.get, media_type.value, name)
    if override is None:
        raise OverrideNotFoundError(media_type, name)
    return override.to_info()


@router.put("/{media_type}/{name}/override")
async def set_override(
    media_type: MediaType,
    name: str,
    request: OverrideRequest,
    overrides: OverridesDep,
) -> OverrideInfo:
    """Force the external catalog ID of an item (last write wins)."""
    _require_override_support(media_type)
    _require_safe_name(media_type, name)
    api_type = request.api_type or media_type.api_type or "movie"
    override = await asyncio.to_thread(
        overrides.set, media_type.value, name, request.id, api_type
    )
    return override.to_info()


@router.delete(
    "/{media_type}/{name}/override",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_override(
    media_type: MediaType, name: str, overrides: OverridesDep
) -> None:
    """Remove the override of an item. No-op if none exists."""
    _require_override_support(media_type)
    await asyncio.to_thread(overrides.remove, media_type.value, name)
