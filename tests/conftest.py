"""Test fixtures and configuration for mediatorr-api tests.

This module provides shared fixtures organized into:
- Database fixtures: In-memory SQLite for repository tests
- Library fixtures: A throwaway media library on disk
- Service fixtures: Event bus and stores wired to the temp library
"""

from __future__ import annotations

import json
import os
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from mediatorr_api.core.enums import ArtifactKind, EventChannel, MediaType
from mediatorr_api.db.repository import OverrideRepository
from mediatorr_api.services.artifacts import ArtifactStore
from mediatorr_api.services.event_bus import ScanEvent, ScanEventBus
from mediatorr_api.services.metadata_cache import MetadataCache
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# =============================================================================
# Time Utilities
# =============================================================================


class MockClock:
    """Mock clock for deterministic time-based testing.

    Usage:
        clock = MockClock()
        clock.advance(60)  # Advance by 60 seconds
        clock.set(datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC))
    """

    def __init__(self, initial: datetime | None = None) -> None:
        self._time = initial or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self._time

    def advance(self, seconds: int) -> None:
        self._time += timedelta(seconds=seconds)

    def set(self, time: datetime) -> None:
        self._time = time


@pytest.fixture
def clock() -> MockClock:
    """Create a mock clock starting at 2024-01-01 12:00 UTC."""
    return MockClock()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create in-memory SQLite engine for tests."""
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine: Engine, clock: MockClock) -> OverrideRepository:
    """Create repository with test engine."""
    return OverrideRepository(engine, clock=clock)


# =============================================================================
# Library Fixtures
# =============================================================================


class LibraryBuilder:
    """Builds media item folders and sidecars under a temp library root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.library = root / "torrent"
        self.tmdb_cache = root / "cache_tmdb"
        self.itunes_cache = root / "cache_itunes"
        self.status_file = root / "status.json"
        for path in (self.library, self.tmdb_cache, self.itunes_cache):
            path.mkdir(parents=True, exist_ok=True)

    def item(
        self,
        media_type: MediaType,
        name: str,
        *kinds: ArtifactKind,
        mtime: float | None = None,
    ) -> Path:
        """Create an item folder holding the given artifacts."""
        media_dir = self.library / media_type.value / name
        media_dir.mkdir(parents=True, exist_ok=True)
        for kind in kinds:
            (media_dir / f"{name}{kind.suffix}").write_text(kind.value)
        if mtime is not None:
            os.utime(media_dir, (mtime, mtime))
        return media_dir

    def cache(self, media_type: MediaType, name: str, data: Any) -> Path:
        """Write a metadata cache entry the way the scan job does."""
        path = MetadataCache(self.tmdb_cache, self.itunes_cache).cache_path(
            media_type, name
        )
        path.write_text(json.dumps(data))
        return path

    def status(self, data: Any) -> Path:
        self.status_file.write_text(json.dumps(data))
        return self.status_file


@pytest.fixture
def library(tmp_path: Path) -> LibraryBuilder:
    """Create an empty library layout under tmp_path."""
    return LibraryBuilder(tmp_path)


@pytest.fixture
def metadata_cache(library: LibraryBuilder) -> MetadataCache:
    return MetadataCache(library.tmdb_cache, library.itunes_cache)


@pytest.fixture
def artifacts(library: LibraryBuilder, metadata_cache: MetadataCache) -> ArtifactStore:
    return ArtifactStore(library.library, metadata_cache)


# =============================================================================
# Event Fixtures
# =============================================================================


@pytest.fixture
def bus(clock: MockClock) -> ScanEventBus:
    """Create an event bus with a deterministic clock."""
    return ScanEventBus(clock=clock)


@pytest.fixture
def recorded(bus: ScanEventBus) -> list[ScanEvent]:
    """Record every event emitted on the bus, in order."""
    events: list[ScanEvent] = []
    for channel in (EventChannel.PROGRESS, EventChannel.COMPLETE, EventChannel.LOG):
        bus.add_listener(channel, events.append)
    return events
