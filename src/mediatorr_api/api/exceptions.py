"""API error responses and exception handlers.

All API errors use a consistent response format:
{
    "error": "error_code",
    "message": "Human-readable description",
    ...additional context fields
}
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mediatorr_api.core.enums import MediaType
from mediatorr_api.exceptions import MediatorrError


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str


# -- Media Exceptions --


class MediaNotFoundError(MediatorrError):
    """Raised when a media item does not exist (or its name is not allowed)."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "media_not_found"

    def __init__(self, media_type: MediaType, name: str) -> None:
        self.media_type = media_type
        self.name = name
        super().__init__(f"Media item {media_type}/{name} not found")


class MediaFileNotFoundError(MediatorrError):
    """Raised when a file cannot be served from an item directory."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "file_not_found"

    def __init__(self, filename: str) -> None:
        super().__init__(f"File {filename} not found")


class OverrideNotFoundError(MediatorrError):
    """Raised when a media item has no override."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "override_not_found"

    def __init__(self, media_type: MediaType, name: str) -> None:
        super().__init__(f"No override for {media_type}/{name}")


class ImageNotFoundError(MediatorrError):
    """Raised when a proxied image cannot be fetched upstream."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "image_not_found"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Image {path} not found")


class InvalidImagePathError(MediatorrError):
    """Raised when a proxied image path is empty or tries to escape."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "invalid_image_path"

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid image path: {path}")


class InvalidConfigError(MediatorrError):
    """Raised when a config update is not a JSON object."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "invalid_config"

    def __init__(self) -> None:
        super().__init__("Config must be a JSON object")


# -- Exception Handlers --


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""

    @app.exception_handler(MediatorrError)
    async def mediatorr_error_handler(
        request: Request, exc: MediatorrError
    ) -> JSONResponse:
        """Generic handler for all MediatorrError subclasses."""
        content: dict[str, str | None] = {
            "error": exc.error_code,
            "message": exc.message,
        }

        # Add context fields if present on the exception
        for field in ("media_type", "reason"):
            value = getattr(exc, field, None)
            if value is not None:
                content[field] = str(value)

        return JSONResponse(status_code=exc.status_code, content=content)
