"""Service protocols for dependency injection."""

from typing import Protocol

from mediatorr_api.db.models import MediaOverride


class OverrideLookup(Protocol):
    """Narrow interface the catalog needs from the override store."""

    def get(self, type: str, name: str) -> MediaOverride | None: ...


class OverrideStore(OverrideLookup, Protocol):
    """Full override store interface used by the API routes."""

    def set(self, type: str, name: str, api_id: int, api_type: str) -> MediaOverride:
        """Insert or replace the override (last write wins)."""
        ...

    def remove(self, type: str, name: str) -> bool:
        """Delete the override. Returns True if one existed."""
        ...
