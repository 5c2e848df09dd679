"""TMDb image proxy endpoint."""

import logging

import httpx
from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from mediatorr_api.api.deps import ImageProxyDep
from mediatorr_api.api.exceptions import (
    ErrorResponse,
    ImageNotFoundError,
    InvalidImagePathError,
)
from mediatorr_api.services.image_proxy import is_safe_image_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["images"])

CACHE_CONTROL = "public, max-age=86400"


@router.get(
    "/tmdb/{path:path}",
    response_class=StreamingResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid image path"},
        404: {"model": ErrorResponse, "description": "Image not found upstream"},
    },
)
async def get_tmdb_image(path: str, image_proxy: ImageProxyDep) -> StreamingResponse:
    """Proxy a TMDb image so the browser never talks to TMDb directly.

    The upstream body is piped through chunk by chunk.
    """
    if not is_safe_image_path(path):
        raise InvalidImagePathError(path)
    try:
        image = await image_proxy.open(path)
    except httpx.HTTPError as e:
        logger.warning("Image proxy failed for %s: %s", path, e)
        raise ImageNotFoundError(path) from e
    return StreamingResponse(
        image.iter_bytes(),
        media_type=image.content_type,
        headers={"Cache-Control": CACHE_CONTROL},
        background=BackgroundTask(image.aclose),
    )
