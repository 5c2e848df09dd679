"""Database repository for media ID overrides."""

from datetime import UTC, datetime

from sqlalchemy import Engine, delete
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from mediatorr_api.core.types import Clock
from mediatorr_api.db.models import MediaOverride
from mediatorr_api.exceptions import OverrideStoreError


class OverrideRepository:
    """Repository for override database operations.

    Each call is independently atomic. ``set`` is a single
    insert-or-update statement so concurrent edits of the same key cannot
    produce duplicate rows or lost updates.
    """

    def __init__(self, engine: Engine, clock: Clock | None = None) -> None:
        """Initialize repository with database engine.

        Args:
            engine: SQLAlchemy engine.
            clock: Function returning the current time, used for updated_at.
        """
        self._engine = engine
        self._clock = clock or (lambda: datetime.now(UTC))

    def get(self, type: str, name: str) -> MediaOverride | None:
        """Get the override for a media item."""
        try:
            with Session(self._engine) as session:
                stmt = select(MediaOverride).where(
                    MediaOverride.type == type, MediaOverride.name == name
                )
                return session.exec(stmt).first()
        except SQLAlchemyError as e:
            raise OverrideStoreError(f"Could not read override: {e}") from e

    def set(self, type: str, name: str, api_id: int, api_type: str) -> MediaOverride:
        """Insert or replace the override for a media item (last write wins)."""
        now = self._clock()
        table = MediaOverride.__table__  # type: ignore[attr-defined]
        stmt = insert(table).values(
            type=type,
            name=name,
            api_id_override=api_id,
            api_type=api_type,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["type", "name"],
            set_={
                "api_id_override": stmt.excluded.api_id_override,
                "api_type": stmt.excluded.api_type,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise OverrideStoreError(f"Could not save override: {e}") from e

        override = self.get(type, name)
        if override is None:
            raise OverrideStoreError(f"Override for {type}/{name} vanished after save")
        return override

    def remove(self, type: str, name: str) -> bool:
        """Delete the override. Returns True if a row was removed."""
        table = MediaOverride.__table__  # type: ignore[attr-defined]
        stmt = delete(table).where(table.c.type == type, table.c.name == name)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            raise OverrideStoreError(f"Could not delete override: {e}") from e
        return result.rowcount > 0

    def count(self, type: str | None = None, name: str | None = None) -> int:
        """Count overrides with optional filters."""
        with Session(self._engine) as session:
            stmt = select(func.count()).select_from(MediaOverride)
            if type is not None:
                stmt = stmt.where(MediaOverride.type == type)
            if name is not None:
                stmt = stmt.where(MediaOverride.name == name)
            return session.exec(stmt).one()
