"""Media API schemas."""

from typing import Literal

from pydantic import Field

from mediatorr_api.core.models import CamelModel

ApiType = Literal["movie", "tv"]


class OverrideRequest(CamelModel):
    """Request to force the external catalog ID of a media item."""

    id: int = Field(ge=1, description="External catalog (TMDb) ID")
    api_type: ApiType | None = Field(
        default=None,
        description="Catalog media type. Defaults to movie for films, tv for series.",
    )


class DeleteArtifactsResponse(CamelModel):
    """Response when artifacts are deleted."""

    deleted: int


class RegenerateResponse(CamelModel):
    """Response when an item is queued for regeneration."""

    deleted: int
    status: Literal["Regeneration triggered"] = "Regeneration triggered"
