"""Database models."""

from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from mediatorr_api.core.models import OverrideInfo


class MediaOverride(SQLModel, table=True):
    """An administrator-assigned external catalog ID for one media item.

    Overrides are sticky: regenerating an item's metadata does not clear
    them.
    """

    __tablename__ = "media_overrides"
    __table_args__ = (UniqueConstraint("type", "name"),)

    id: int | None = Field(default=None, primary_key=True)
    type: str = Field(index=True)
    name: str
    api_id_override: int
    api_type: str = Field(default="movie")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_info(self) -> OverrideInfo:
        """API view of this override."""
        return OverrideInfo(
            id=self.api_id_override,
            api_type=self.api_type,
            updated_at=self.updated_at,
        )
