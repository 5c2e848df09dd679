"""Database module for media ID overrides."""

from mediatorr_api.db.engine import create_db_engine, init_db
from mediatorr_api.db.models import MediaOverride
from mediatorr_api.db.repository import OverrideRepository

__all__ = [
    "MediaOverride",
    "OverrideRepository",
    "create_db_engine",
    "init_db",
]
