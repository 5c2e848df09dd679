"""Library statistics endpoint."""

import asyncio

from fastapi import APIRouter

from mediatorr_api.api.deps import CatalogDep
from mediatorr_api.core.models import LibraryStats

router = APIRouter(tags=["stats"])


@router.get("/stats")
async def get_stats(catalog: CatalogDep) -> LibraryStats:
    """Item counts per type, library size on disk and last scan time."""
    return await asyncio.to_thread(catalog.stats)
