"""Tests for the override repository."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from conftest import MockClock
from mediatorr_api.db import OverrideRepository, create_db_engine, init_db
from mediatorr_api.exceptions import OverrideStoreError
from sqlalchemy.engine import Engine


class TestOverrideRepository:
    """Tests for OverrideRepository."""

    def test_get_missing(self, repository: OverrideRepository) -> None:
        """Should return None when no override exists."""
        assert repository.get("films", "Movie") is None

    def test_set_and_get(self, repository: OverrideRepository) -> None:
        """Should store and retrieve an override."""
        created = repository.set("films", "Movie", 603, "movie")

        assert created.id is not None
        assert created.api_id_override == 603
        assert created.api_type == "movie"

        fetched = repository.get("films", "Movie")
        assert fetched is not None
        assert fetched.api_id_override == 603

    def test_last_write_wins(
        self, repository: OverrideRepository, clock: MockClock
    ) -> None:
        """Should replace the previous value and bump updated_at only."""
        first = repository.set("series", "Show", 1, "tv")
        clock.advance(60)

        second = repository.set("series", "Show", 2, "tv")

        assert second.id == first.id
        assert second.api_id_override == 2
        assert second.created_at == first.created_at
        assert second.updated_at > first.updated_at
        assert repository.count("series", "Show") == 1

    def test_key_includes_type(self, repository: OverrideRepository) -> None:
        """Should keep separate overrides for the same name across types."""
        repository.set("films", "Same", 1, "movie")
        repository.set("series", "Same", 2, "tv")

        assert repository.count(name="Same") == 2
        film = repository.get("films", "Same")
        assert film is not None
        assert film.api_id_override == 1

    def test_remove(self, repository: OverrideRepository) -> None:
        """Should delete the override and report whether one existed."""
        repository.set("films", "Movie", 603, "movie")

        assert repository.remove("films", "Movie") is True
        assert repository.get("films", "Movie") is None
        assert repository.remove("films", "Movie") is False

    def test_count_filters(self, repository: OverrideRepository) -> None:
        repository.set("films", "A", 1, "movie")
        repository.set("films", "B", 2, "movie")
        repository.set("series", "C", 3, "tv")

        assert repository.count() == 3
        assert repository.count("films") == 2
        assert repository.count("series", "C") == 1

    def test_to_info(self, repository: OverrideRepository) -> None:
        """Should expose the API view with camelCase keys."""
        override = repository.set("series", "Show", 1399, "tv")

        data = override.to_info().model_dump(by_alias=True, mode="json")

        assert data["id"] == 1399
        assert data["apiType"] == "tv"
        assert data["updatedAt"].startswith("2024-01-01T12:00:00")

    def test_store_failure_is_wrapped(self, engine: Engine) -> None:
        """Should raise OverrideStoreError when the table is unusable."""
        repository = OverrideRepository(engine)
        with engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE media_overrides")

        with pytest.raises(OverrideStoreError):
            repository.get("films", "Movie")
        with pytest.raises(OverrideStoreError):
            repository.set("films", "Movie", 1, "movie")


class TestConcurrentWrites:
    """Concurrent upserts against a file database."""

    def test_single_row_per_key(self, tmp_path: Path) -> None:
        """Should end with exactly one row holding one of the written values."""
        engine = create_db_engine(tmp_path / "overrides.db")
        init_db(engine)
        repository = OverrideRepository(engine)

        def write(api_id: int) -> None:
            repository.set("films", "Movie", api_id, "movie")

        try:
            with ThreadPoolExecutor(max_workers=8) as pool:
                list(pool.map(write, range(1, 33)))

            assert repository.count("films", "Movie") == 1
            override = repository.get("films", "Movie")
            assert override is not None
            assert 1 <= override.api_id_override <= 32
        finally:
            engine.dispose()

    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "nested" / "overrides.db")
        try:
            with engine.connect() as conn:
                mode = conn.exec_driver_sql("PRAGMA journal_mode").scalar()
            assert mode == "wal"
        finally:
            engine.dispose()
